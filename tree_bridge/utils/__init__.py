"""Tree Bridge - Utility Components.

Shared logging, timing and error-handling helpers used by every adapter.

Example:
    >>> from tree_bridge.utils import get_logger, timed_operation
    >>> logger = get_logger(__name__)
    >>> with timed_operation('lightgbm_training'):
    ...     booster = call.run()
"""

from .logger import (
    get_logger,
    configure_logging,
    set_log_level,
    temporary_log_level
)
from .timer import (
    timer,
    timed_operation,
    get_performance_stats,
    reset_performance_stats
)
from .exceptions import (
    TreeBridgeError,
    ConfigurationError,
    InvalidArgumentError,
    UnresolvedTuningPlaceholderError,
    DataValidationError,
    FileOperationError,
    DroppedArgumentWarning,
    validate_parameter,
    validate_flag
)
from .error_handling import (
    ErrorContext,
    backend_call_context
)

__all__ = [
    # Logging utilities
    'get_logger',
    'configure_logging',
    'set_log_level',
    'temporary_log_level',

    # Timing utilities
    'timer',
    'timed_operation',
    'get_performance_stats',
    'reset_performance_stats',

    # Exceptions and validation
    'TreeBridgeError',
    'ConfigurationError',
    'InvalidArgumentError',
    'UnresolvedTuningPlaceholderError',
    'DataValidationError',
    'FileOperationError',
    'DroppedArgumentWarning',
    'validate_parameter',
    'validate_flag',

    # Backend call context
    'ErrorContext',
    'backend_call_context'
]
