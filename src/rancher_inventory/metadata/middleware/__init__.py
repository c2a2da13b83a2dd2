"""Cross-cutting decorators for the metadata client and read service."""

from .instrumentation import (
    MetadataClientInstrumenter,
    ReadServiceInstrumenter,
    ServiceMetrics,
)
from .service_logging import MetadataClientLogger, ReadServiceLogger, log_call

__all__ = [
    "MetadataClientLogger",
    "ReadServiceLogger",
    "log_call",
    "MetadataClientInstrumenter",
    "ReadServiceInstrumenter",
    "ServiceMetrics",
]
