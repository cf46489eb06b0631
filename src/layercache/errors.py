"""
Exception hierarchy for the layered cache.

Configuration errors are always raised. Backend errors raised by a
remote layer are raised or logged-and-swallowed depending on that
layer's ``shallow_errors`` setting.
"""

from datetime import datetime
from typing import Any, Dict, Optional


class LayerCacheError(Exception):
    """Base exception for all layercache errors."""

    def __init__(self, message: str, component: str = "unknown",
                 context: Optional[Dict[str, Any]] = None):
        """Initialize exception with metadata.

        Args:
            message: Error message
            component: Component where error occurred
            context: Additional context data
        """
        self.message = message
        self.component = component
        self.context = context or {}
        self.timestamp = datetime.now()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to structured log format."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "component": self.component,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class CacheConfigurationError(LayerCacheError):
    """Raised when a manager or layer is configured inconsistently."""
    pass


class CacheTimeoutError(LayerCacheError):
    """
    Raised when a remote read exceeds its timeout.

    Attributes:
        operation: Name of the operation that timed out
        timeout_ms: Timeout value that was exceeded, in milliseconds
    """

    def __init__(self, operation: str, timeout_ms: float, component: str = "redis"):
        self.operation = operation
        self.timeout_ms = timeout_ms
        super().__init__(
            f"Operation '{operation}' exceeded timeout of {timeout_ms}ms",
            component=component,
            context={"operation": operation, "timeout_ms": timeout_ms},
        )
