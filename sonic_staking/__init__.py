"""Sonic staking dashboard feed."""

__version__ = "0.1.0"
