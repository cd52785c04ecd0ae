"""Context for backend calls: structured failure logging without wrapping.

Backend exceptions must reach the caller as the very object the backend
raised, so the context here only records what was being attempted before
re-raising.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional
import traceback
import sys
from dataclasses import dataclass, field
from datetime import datetime

from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class ErrorContext:
    """Where a backend call was made and with which inputs."""
    operation: str
    component: str
    timestamp: datetime = field(default_factory=datetime.now)
    user_data: Optional[Dict[str, Any]] = None
    system_info: Optional[Dict[str, Any]] = None

    def __post_init__(self) -> None:
        if self.system_info is None:
            self.system_info = {
                'python_version': sys.version_info[:3],
                'platform': sys.platform
            }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'component': self.component,
            'timestamp': self.timestamp.isoformat(),
            'user_data': self.user_data or {},
            'system_info': self.system_info or {},
        }


@contextmanager
def backend_call_context(
    operation_name: str,
    component_name: str,
    **user_data: Any
) -> Iterator[ErrorContext]:
    """Log a backend call and its failure, then propagate the original error.

    Args:
        operation_name: Name of the operation, e.g. ``"lgb.train"``
        component_name: Adapter performing the call
        **user_data: Shapes and settings worth seeing in the failure log

    Example:
        >>> with backend_call_context("lgb.train", "LightGBMAdapter", n_rows=150):
        ...     booster = lgb.train(params, train_set)
    """
    context = ErrorContext(
        operation=operation_name,
        component=component_name,
        user_data=user_data
    )
    component_logger = get_logger(f"{__name__}.{component_name}")
    component_logger.debug(f"Starting backend call: {operation_name}")

    try:
        yield context
    except Exception as e:
        component_logger.error(
            f"Backend call '{operation_name}' failed in {component_name}: {type(e).__name__}: {e}",
            extra={
                'context': context.to_dict(),
                'traceback': traceback.format_exc()
            }
        )
        raise

    component_logger.debug(f"Completed backend call: {operation_name}")
