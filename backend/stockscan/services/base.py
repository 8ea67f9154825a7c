"""
Base Service Interface

All services inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseService(ABC, Generic[InputT, OutputT]):
    """
    Base class for all services.

    Each service:
    - Has a defined input type
    - Has a defined output type
    - Can check its health
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name for logging."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """
        Execute the service's main function.

        Args:
            input_data: Validated input conforming to InputT schema

        Returns:
            Output conforming to OutputT schema

        Raises:
            ServiceError: If execution fails
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if service is healthy and can process requests."""
        pass


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, service_name: str, message: str, details: dict = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class DataSourceError(ServiceError):
    """Price or fundamentals source could not be read."""
    pass


# =============================================================================
# INDICATOR ENGINE ERRORS
# =============================================================================


class IndicatorError(ServiceError):
    """
    Deterministic data-shape problem found by the indicator engine.

    Each subclass names the skip reason the pipeline records for it.
    """

    reason: str = "computation_error"

    def __init__(self, message: str, details: dict = None):
        super().__init__("IndicatorEngine", message, details)


class InsufficientDataError(IndicatorError):
    """Input shorter than an indicator's minimum window."""

    reason = "insufficient_data"

    def __init__(self, indicator: str, required: int, available: int):
        self.indicator = indicator
        self.required = required
        self.available = available
        super().__init__(
            f"{indicator} needs {required} points, got {available}",
            {"indicator": indicator, "required": required, "available": available},
        )


class MalformedSeriesError(IndicatorError):
    """Parallel OHLCV arrays disagree in length or hold non-finite prices."""

    reason = "malformed_series"


class IdentityMissingError(IndicatorError):
    """Instrument has no symbol or company name."""

    reason = "identity_missing"
