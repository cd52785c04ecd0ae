# tree_bridge/utils/exceptions.py
"""Exception hierarchy for the tree_bridge package.

Every error raised by the shim itself derives from ``TreeBridgeError``.
Errors raised by a backend (LightGBM, scikit-learn) are never wrapped and
reach the caller unchanged.
"""

from typing import Any, Optional, Dict, List


class TreeBridgeError(Exception):
    """Base exception for all tree_bridge errors.

    Carries an optional error code and a context dictionary so callers can
    handle failures programmatically and logs show what was being checked.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize TreeBridgeError.

        Args:
            message: Human-readable error message
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of error."""
        base_msg = self.message
        if self.error_code:
            base_msg = f"[{self.error_code}] {base_msg}"
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg = f"{base_msg} (Context: {context_str})"
        return base_msg


class ConfigurationError(TreeBridgeError):
    """Raised when configuration is invalid or cannot be loaded.

    This exception is raised for issues with:
    - Missing or unreadable configuration files
    - Malformed YAML/JSON content
    - Configuration sections of the wrong shape
    """
    pass


class InvalidArgumentError(ConfigurationError):
    """Raised when a caller-supplied value violates a documented constraint.

    Examples are a feature-sampling value that conflicts with its count or
    proportion interpretation, a non-boolean flag, or a misspelled
    prediction keyword.
    """
    pass


class UnresolvedTuningPlaceholderError(ConfigurationError):
    """Raised when a hyperparameter still holds a ``tune()`` marker at fit time."""
    pass


class DataValidationError(TreeBridgeError):
    """Raised when predictor tables or outcome vectors fail validation.

    This exception is raised for issues with:
    - Column dtypes that are neither numeric nor categorical
    - Predictor/outcome length mismatches
    - Outcomes whose type does not match the requested mode
    """
    pass


class FileOperationError(TreeBridgeError):
    """Raised when file I/O operations fail (log files, config files)."""
    pass


class DroppedArgumentWarning(UserWarning):
    """Emitted when guarded arguments are discarded before the backend call."""
    pass


def validate_parameter(
    param_name: str,
    param_value: Any,
    valid_values: Optional[List[Any]] = None,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
    required: bool = False
) -> None:
    """Validate a parameter value and raise InvalidArgumentError if invalid.

    Args:
        param_name: Name of the parameter being validated
        param_value: Value to validate
        valid_values: List of valid values (if applicable)
        min_value: Minimum allowed value (for numeric parameters)
        max_value: Maximum allowed value (for numeric parameters)
        required: Whether the parameter is required (cannot be None)

    Raises:
        InvalidArgumentError: If validation fails
    """
    if required and param_value is None:
        raise InvalidArgumentError(
            f"Parameter '{param_name}' is required but was not provided",
            error_code="PARAM_REQUIRED",
            context={"parameter": param_name}
        )

    if param_value is None:
        return  # Optional parameter not provided

    if valid_values is not None and param_value not in valid_values:
        raise InvalidArgumentError(
            f"Parameter '{param_name}' must be one of {valid_values}, got {param_value}",
            error_code="PARAM_INVALID_VALUE",
            context={"parameter": param_name, "value": param_value, "valid_values": valid_values}
        )

    if min_value is not None and param_value < min_value:
        raise InvalidArgumentError(
            f"Parameter '{param_name}' must be >= {min_value}, got {param_value}",
            error_code="PARAM_TOO_SMALL",
            context={"parameter": param_name, "value": param_value, "min_value": min_value}
        )

    if max_value is not None and param_value > max_value:
        raise InvalidArgumentError(
            f"Parameter '{param_name}' must be <= {max_value}, got {param_value}",
            error_code="PARAM_TOO_LARGE",
            context={"parameter": param_name, "value": param_value, "max_value": max_value}
        )


def validate_flag(param_name: str, param_value: Any) -> None:
    """Require a strictly boolean flag.

    Raises:
        InvalidArgumentError: If ``param_value`` is not a ``bool``
    """
    if not isinstance(param_value, bool):
        raise InvalidArgumentError(
            f"'{param_name}' should be a logical value.",
            error_code="PARAM_NOT_BOOLEAN",
            context={"parameter": param_name, "value": param_value}
        )


def create_error_context(**kwargs: Any) -> Dict[str, Any]:
    """Create an error context dictionary with standardized keys.

    Args:
        **kwargs: Key-value pairs to include in context

    Returns:
        Dictionary with error context information
    """
    context = {}
    for key, value in kwargs.items():
        # Complex objects are stringified so the context stays serializable
        if hasattr(value, '__dict__') or hasattr(value, '__slots__'):
            context[key] = str(value)
        else:
            context[key] = value

    return context
