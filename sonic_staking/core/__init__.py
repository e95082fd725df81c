# Core module
from sonic_staking.core.config import get_settings, Settings
from sonic_staking.core.metrics import get_metrics, MetricsCollector

__all__ = ["get_settings", "Settings", "get_metrics", "MetricsCollector"]
