"""In-process metrics for GraphQL queries and poll cycles.

Tracks per-query call counts, latency and errors, plus the health of the
polling loop, so a consumer can tell a flaky upstream from a dead one.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

logger = structlog.get_logger()


@dataclass
class QueryMetrics:
    """Metrics for a single named GraphQL query."""
    query_name: str
    call_count: int = 0
    success_count: int = 0
    error_count: int = 0
    server_error_count: int = 0  # 5xx
    total_latency_ms: float = 0.0
    retry_count: int = 0
    last_call_at: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_at: Optional[datetime] = None

    @property
    def avg_latency_ms(self) -> float:
        if self.call_count == 0:
            return 0.0
        return self.total_latency_ms / self.call_count

    @property
    def success_rate(self) -> float:
        if self.call_count == 0:
            return 1.0
        return self.success_count / self.call_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query_name": self.query_name,
            "call_count": self.call_count,
            "success_count": self.success_count,
            "error_count": self.error_count,
            "server_error_count": self.server_error_count,
            "avg_latency_ms": round(self.avg_latency_ms, 2),
            "retry_count": self.retry_count,
            "success_rate": round(self.success_rate, 4),
            "last_call_at": self.last_call_at.isoformat() if self.last_call_at else None,
            "last_error": self.last_error,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
        }


@dataclass
class PollStatus:
    """Outcome counters for the dashboard polling loop."""
    success_count: int = 0
    failure_count: int = 0
    consecutive_failures: int = 0
    last_success_at: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "consecutive_failures": self.consecutive_failures,
            "last_success_at": self.last_success_at.isoformat() if self.last_success_at else None,
            "last_attempt_at": self.last_attempt_at.isoformat() if self.last_attempt_at else None,
            "last_error": self.last_error,
        }


class MetricsCollector:
    """Singleton metrics collector for the feed."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._query_metrics: Dict[str, QueryMetrics] = {}
        self._poll_status = PollStatus()
        self._started_at = datetime.now(timezone.utc)
        self._recent_errors: List[Dict[str, Any]] = []
        self._max_recent_errors = 50

    # ==================== Query Metrics ====================

    async def record_query(
        self,
        query_name: str,
        latency_ms: float,
        success: bool,
        status_code: Optional[int] = None,
        error_message: Optional[str] = None,
        retries: int = 0,
    ) -> None:
        """Record the final outcome of one client.execute() call."""
        async with self._lock:
            if query_name not in self._query_metrics:
                self._query_metrics[query_name] = QueryMetrics(query_name=query_name)

            m = self._query_metrics[query_name]
            m.call_count += 1
            m.total_latency_ms += latency_ms
            m.retry_count += retries
            m.last_call_at = datetime.now(timezone.utc)

            if success:
                m.success_count += 1
            else:
                m.error_count += 1
                m.last_error = error_message
                m.last_error_at = datetime.now(timezone.utc)
                if status_code and status_code >= 500:
                    m.server_error_count += 1

                self._recent_errors.append({
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                    "query_name": query_name,
                    "status_code": status_code,
                    "error": error_message,
                })
                del self._recent_errors[:-self._max_recent_errors]

        log_data = {
            "query_name": query_name,
            "latency_ms": round(latency_ms, 2),
            "success": success,
            "status_code": status_code,
            "retries": retries,
        }
        if error_message:
            log_data["error"] = error_message[:200]

        if success:
            logger.debug("Query completed", **log_data)
        else:
            logger.warning("Query failed", **log_data)

    def get_query_metrics(self) -> Dict[str, Dict[str, Any]]:
        """Get metrics for every query seen so far."""
        return {
            name: m.to_dict()
            for name, m in self._query_metrics.items()
        }

    def get_query_summary(self) -> Dict[str, Any]:
        """Get aggregated query metrics."""
        total_calls = sum(m.call_count for m in self._query_metrics.values())
        total_errors = sum(m.error_count for m in self._query_metrics.values())
        total_retries = sum(m.retry_count for m in self._query_metrics.values())

        return {
            "total_calls": total_calls,
            "total_errors": total_errors,
            "total_retries": total_retries,
            "error_rate": round(total_errors / total_calls, 4) if total_calls > 0 else 0,
            "queries_tracked": len(self._query_metrics),
        }

    # ==================== Poll Cycles ====================

    async def record_poll_success(self) -> None:
        async with self._lock:
            now = datetime.now(timezone.utc)
            self._poll_status.success_count += 1
            self._poll_status.consecutive_failures = 0
            self._poll_status.last_success_at = now
            self._poll_status.last_attempt_at = now
            self._poll_status.last_error = None

    async def record_poll_failure(self, error_message: str) -> None:
        async with self._lock:
            self._poll_status.failure_count += 1
            self._poll_status.consecutive_failures += 1
            self._poll_status.last_attempt_at = datetime.now(timezone.utc)
            self._poll_status.last_error = error_message

    def get_poll_status(self) -> Dict[str, Any]:
        return self._poll_status.to_dict()

    def to_dict(self) -> Dict[str, Any]:
        """Full metrics report."""
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "uptime_seconds": (datetime.now(timezone.utc) - self._started_at).total_seconds(),
            "query_health": self.get_query_summary(),
            "queries": self.get_query_metrics(),
            "polling": self.get_poll_status(),
            "recent_errors": list(self._recent_errors),
        }

    async def reset(self) -> None:
        """Reset all metrics (for testing)."""
        async with self._lock:
            self._query_metrics.clear()
            self._poll_status = PollStatus()
            self._recent_errors.clear()
            self._started_at = datetime.now(timezone.utc)


# Lazy singleton
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create the metrics collector singleton."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
