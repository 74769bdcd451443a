"""
Performance and error tracking for upstream completion calls.
"""
import logging
import time
from dataclasses import dataclass
from typing import Optional
from collections import deque

logger = logging.getLogger(__name__)

@dataclass
class UpstreamCallRecord:
    """Record of a single upstream call."""
    timestamp: float
    latency_ms: int
    success: bool
    status_code: Optional[int] = None
    tokens_used: Optional[int] = None
    error: Optional[str] = None


class UpstreamStats:
    """Tracks upstream call statistics over a bounded history."""
    
    def __init__(self, max_history: int = 1000):
        self._calls: deque[UpstreamCallRecord] = deque(maxlen=max_history)
        self._total_calls: int = 0
        self._total_failures: int = 0
        self._total_tokens: int = 0
    
    def record_success(self, latency_ms: int, tokens: Optional[int] = None):
        """Record a successful upstream call."""
        self._calls.append(UpstreamCallRecord(
            timestamp=time.time(),
            latency_ms=latency_ms,
            success=True,
            status_code=200,
            tokens_used=tokens,
        ))
        self._total_calls += 1
        if tokens:
            self._total_tokens += tokens
        
        logger.debug(
            "Upstream call success: latency=%dms, tokens=%s",
            latency_ms, tokens
        )
    
    def record_failure(self, latency_ms: int, error: str, status_code: Optional[int] = None):
        """Record a failed upstream call."""
        self._calls.append(UpstreamCallRecord(
            timestamp=time.time(),
            latency_ms=latency_ms,
            success=False,
            status_code=status_code,
            error=error,
        ))
        self._total_calls += 1
        self._total_failures += 1
        
        logger.warning(
            "Upstream call failed: latency=%dms, status=%s, error=%s",
            latency_ms, status_code, error
        )
    
    def get_summary(self) -> dict:
        """Get a summary of upstream call statistics."""
        if not self._calls:
            return {
                "total_calls": 0,
                "total_failures": 0,
                "failure_rate": 0.0,
                "avg_latency_ms": 0,
                "max_latency_ms": 0,
                "min_latency_ms": 0,
                "p95_latency_ms": 0,
                "total_tokens": 0,
                "recent_errors": [],
            }
        
        latencies = [c.latency_ms for c in self._calls]
        sorted_latencies = sorted(latencies)
        
        p95_idx = int(len(sorted_latencies) * 0.95)
        p95_latency = sorted_latencies[min(p95_idx, len(sorted_latencies) - 1)]
        
        # Last 5, newest first
        recent_errors = [
            {
                "timestamp": c.timestamp,
                "status_code": c.status_code,
                "error": c.error,
                "latency_ms": c.latency_ms,
            }
            for c in reversed(self._calls)
            if not c.success
        ][:5]
        
        failure_rate = self._total_failures / self._total_calls * 100
        
        return {
            "total_calls": self._total_calls,
            "total_failures": self._total_failures,
            "failure_rate": round(failure_rate, 2),
            "avg_latency_ms": round(sum(latencies) / len(latencies)),
            "max_latency_ms": max(latencies),
            "min_latency_ms": min(latencies),
            "p95_latency_ms": p95_latency,
            "total_tokens": self._total_tokens,
            "recent_errors": recent_errors,
        }
