"""
Monitoring Layer

- Structured logging (JSON or text formatting, context injection)
- Operation counters (Prometheus text export)
"""

# Logging
from .logging import (
    JSONFormatter,
    ContextFilter,
    StructuredLogger,
    configure_logging,
    configure_from_preset,
    current_context,
    get_logger,
    set_request_context,
    clear_request_context,
    operation_context,
    LOGGING_PRESETS,
)

# Metrics
from .metrics import (
    Counter,
    MetricsRegistry,
    get_registry,
    counter,
)

__all__ = [
    # Logging
    'JSONFormatter',
    'ContextFilter',
    'StructuredLogger',
    'configure_logging',
    'configure_from_preset',
    'current_context',
    'get_logger',
    'set_request_context',
    'clear_request_context',
    'operation_context',
    'LOGGING_PRESETS',

    # Metrics
    'Counter',
    'MetricsRegistry',
    'get_registry',
    'counter',
]
