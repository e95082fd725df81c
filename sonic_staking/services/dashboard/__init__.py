# Dashboard services module
from sonic_staking.services.dashboard.aggregator import DashboardAggregator, summarize

__all__ = ["DashboardAggregator", "summarize"]
