# tests/test_utils.py
"""Unit tests for timing, exceptions and backend-call error handling."""

import time

import pytest

from tree_bridge.utils.error_handling import ErrorContext, backend_call_context
from tree_bridge.utils.exceptions import (
    ConfigurationError,
    InvalidArgumentError,
    TreeBridgeError,
    create_error_context,
    validate_flag,
    validate_parameter,
)
from tree_bridge.utils.timer import (
    get_performance_stats,
    reset_performance_stats,
    timed_operation,
    timer,
)


@pytest.fixture(autouse=True)
def clean_stats():
    reset_performance_stats()
    yield
    reset_performance_stats()


@pytest.mark.unit
class TestTimer:
    """Timing decorator and context manager."""

    def test_decorator_records_calls(self):
        @timer(name="double")
        def double(value):
            return 2 * value

        assert double(3) == 6
        assert double(4) == 8

        stats = get_performance_stats("double")
        assert stats["call_count"] == 2
        assert stats["min_time"] <= stats["max_time"]

    def test_decorator_reraises(self):
        @timer(name="failing")
        def failing():
            raise KeyError("boom")

        with pytest.raises(KeyError):
            failing()
        assert get_performance_stats("failing") == {}

    def test_timed_operation_duration(self):
        with timed_operation("sleep") as timing:
            time.sleep(0.01)

        assert timing["duration"] > 0
        assert get_performance_stats("sleep")["call_count"] == 1

    def test_untracked_operation(self):
        with timed_operation("quiet_op", track_performance=False):
            pass
        assert "quiet_op" not in get_performance_stats()


@pytest.mark.unit
class TestExceptions:
    """Exception hierarchy and validation helpers."""

    def test_message_with_code_and_context(self):
        error = TreeBridgeError("bad value", error_code="CODE", context={"a": 1})
        assert str(error) == "[CODE] bad value (Context: a=1)"

    def test_hierarchy(self):
        assert issubclass(InvalidArgumentError, ConfigurationError)
        assert issubclass(ConfigurationError, TreeBridgeError)

    def test_validate_parameter(self):
        validate_parameter("x", None)
        validate_parameter("x", 3, min_value=1, max_value=5)

        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_parameter("x", None, required=True)
        assert exc_info.value.error_code == "PARAM_REQUIRED"

        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_parameter("x", "c", valid_values=["a", "b"])
        assert exc_info.value.error_code == "PARAM_INVALID_VALUE"

        with pytest.raises(InvalidArgumentError) as exc_info:
            validate_parameter("x", 9, max_value=5)
        assert exc_info.value.error_code == "PARAM_TOO_LARGE"

    @pytest.mark.parametrize("value", [1, "TRUE", None])
    def test_validate_flag_rejects_non_booleans(self, value):
        with pytest.raises(InvalidArgumentError, match="'quiet' should be a logical value."):
            validate_flag("quiet", value)

    def test_error_context_stringifies_objects(self):
        context = create_error_context(n=3, obj=ErrorContext("op", "comp"))

        assert context["n"] == 3
        assert isinstance(context["obj"], str)


@pytest.mark.unit
class TestBackendCallContext:
    """Backend failures are logged and re-raised as the same object."""

    def test_original_exception_propagates(self):
        original = RuntimeError("backend exploded")

        with pytest.raises(RuntimeError) as exc_info:
            with backend_call_context("lgb.train", "LightGBMAdapter", n_rows=10):
                raise original

        assert exc_info.value is original

    def test_yields_context(self):
        with backend_call_context("fit", "ForestAdapter", n_rows=5) as context:
            pass

        assert context.operation == "fit"
        assert context.to_dict()["user_data"] == {"n_rows": 5}
