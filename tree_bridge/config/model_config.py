# tree_bridge/config/model_config.py
"""Typed engine configuration records.

Each supported engine has a dataclass declaring every recognized option as
a named field. Records validate themselves on construction, so a bad value
is reported before any data is marshaled or any backend is called.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Type, Union

from ..utils.exceptions import (
    InvalidArgumentError,
    UnresolvedTuningPlaceholderError,
    validate_flag,
    validate_parameter,
)
from ..utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TuneMarker:
    """Placeholder for a hyperparameter that is still to be optimized."""

    id: str = ""

    def __repr__(self) -> str:
        return f"tune({self.id!r})" if self.id else "tune()"


def tune(id: str = "") -> TuneMarker:
    """Mark a hyperparameter for later optimization.

    Example:
        >>> LightGBMConfig(learning_rate=tune())
        Traceback (most recent call last):
        ...
        UnresolvedTuningPlaceholderError: ...
    """
    return TuneMarker(id)


def is_tune_marker(value: Any) -> bool:
    return isinstance(value, TuneMarker)


def check_tuning_placeholders(config: "BaseEngineConfig") -> None:
    """Reject a record that still carries ``tune()`` markers.

    Raises:
        UnresolvedTuningPlaceholderError: Naming every unresolved parameter
    """
    unresolved = [f.name for f in fields(config) if is_tune_marker(getattr(config, f.name))]
    unresolved += [name for name, value in config.engine_args.items() if is_tune_marker(value)]

    if unresolved:
        raise UnresolvedTuningPlaceholderError(
            f"The supplied parameter(s) {', '.join(f'`{name}`' for name in unresolved)} "
            f"are marked with `tune()`. Did you forget to optimize hyperparameters "
            f"with a tuning function before fitting?",
            error_code="UNRESOLVED_TUNE",
            context={"parameters": unresolved}
        )


@dataclass
class BaseEngineConfig:
    """Options shared by all engines.

    ``engine_args`` holds pass-through arguments for the backend that have
    no dedicated field.
    """

    engine: str = "base"
    random_state: Optional[int] = None
    engine_args: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        check_tuning_placeholders(self)
        validate_parameter("random_state", self.random_state, min_value=0)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten the record, ``engine_args`` merged in, ``None`` values dropped."""
        config_dict = {}

        for field_name, field_value in self.__dict__.items():
            if field_value is not None and not field_name.startswith("_"):
                if field_name == "engine_args":
                    config_dict.update(field_value)
                else:
                    config_dict[field_name] = field_value

        return config_dict

    def update_from_env(self, prefix: str = "") -> None:
        """Update fields from environment variables named ``<prefix><FIELD>``.

        Args:
            prefix: Environment variable prefix (e.g., "TREE_BRIDGE_LIGHTGBM_")
        """
        for config_field in fields(self):
            env_name = f"{prefix}{config_field.name.upper()}"
            if env_name not in os.environ or config_field.name == "engine_args":
                continue

            env_value = os.environ[env_name]
            field_type = config_field.type

            try:
                if field_type in (int, Optional[int]):
                    converted_value: Any = int(env_value)
                elif field_type in (bool, Optional[bool]):
                    converted_value = env_value.lower() in ("true", "1", "yes", "on")
                elif field_type in (float, Optional[float], Optional[Union[float, TuneMarker]]):
                    converted_value = float(env_value)
                else:
                    converted_value = env_value
            except (ValueError, TypeError) as e:
                logger.warning(f"Failed to parse environment variable {env_name}: {e}")
                continue

            setattr(self, config_field.name, converted_value)
            logger.info(f"Updated {config_field.name} from environment: {converted_value}")

        self.__post_init__()


@dataclass
class LightGBMConfig(BaseEngineConfig):
    """Hyperparameters of the LightGBM adapter.

    ``feature_fraction`` and ``validation`` default to ``None`` meaning
    "not supplied": the adapter then uses 1.0 (every column) and 0 (no
    explicit validation split). With ``counts=True`` a supplied
    ``feature_fraction`` is a number of columns, otherwise a proportion.
    ``quiet`` mutes LightGBM's own output.
    """

    engine: str = "lightgbm"

    max_depth: int = -1  # -1 means no limit
    num_iterations: int = 100
    learning_rate: float = 0.1
    feature_fraction: Optional[Union[float, TuneMarker]] = None
    counts: bool = True
    min_data_in_leaf: int = 20
    min_gain_to_split: float = 0.0
    bagging_fraction: float = 1.0

    early_stopping_rounds: Optional[int] = None
    validation: Optional[float] = None

    quiet: bool = False
    num_threads: Optional[int] = None

    def __post_init__(self) -> None:
        super().__post_init__()

        validate_flag("quiet", self.quiet)
        validate_flag("counts", self.counts)

        validate_parameter("num_iterations", self.num_iterations, min_value=1)
        validate_parameter("learning_rate", self.learning_rate, min_value=0.0)
        validate_parameter("min_data_in_leaf", self.min_data_in_leaf, min_value=0)
        validate_parameter("min_gain_to_split", self.min_gain_to_split, min_value=0.0)
        validate_parameter("bagging_fraction", self.bagging_fraction, min_value=0.0, max_value=1.0)
        validate_parameter("early_stopping_rounds", self.early_stopping_rounds, min_value=1)
        validate_parameter("num_threads", self.num_threads, min_value=0)

        if self.validation is not None and not 0 <= self.validation < 1:
            raise InvalidArgumentError(
                f"`validation` must be a proportion in [0, 1), got {self.validation}",
                error_code="PARAM_OUT_OF_RANGE",
                context={"parameter": "validation", "value": self.validation}
            )

    @property
    def feature_fraction_missing(self) -> bool:
        return self.feature_fraction is None

    @property
    def validation_missing(self) -> bool:
        return self.validation is None


@dataclass
class DecisionTreeConfig(BaseEngineConfig):
    """Hyperparameters of the single decision tree engine."""

    engine: str = "cart"

    tree_depth: int = 30
    min_n: int = 2
    cost_complexity: float = 0.01

    def __post_init__(self) -> None:
        super().__post_init__()
        validate_parameter("tree_depth", self.tree_depth, min_value=1)
        validate_parameter("min_n", self.min_n, min_value=2)
        validate_parameter("cost_complexity", self.cost_complexity, min_value=0.0)

    def estimator_params(self) -> Dict[str, Any]:
        """Keyword arguments for the scikit-learn tree estimators."""
        params = {
            "max_depth": self.tree_depth,
            "min_samples_split": self.min_n,
            "ccp_alpha": self.cost_complexity,
            "random_state": self.random_state,
        }
        params.update(self.engine_args)
        return params


@dataclass
class ForestConfig(BaseEngineConfig):
    """Hyperparameters of the random forest engine.

    ``mtry`` is the number of columns sampled at each split; ``None`` lets
    the estimator use the square root of the column count.
    """

    engine: str = "forest"

    mtry: Optional[int] = None
    trees: int = 500
    min_n: int = 20
    n_jobs: Optional[int] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        validate_parameter("mtry", self.mtry, min_value=1)
        validate_parameter("trees", self.trees, min_value=1)
        validate_parameter("min_n", self.min_n, min_value=2)

    def estimator_params(self) -> Dict[str, Any]:
        """Keyword arguments for the scikit-learn forest estimators."""
        params = {
            "n_estimators": self.trees,
            "max_features": self.mtry if self.mtry is not None else "sqrt",
            "min_samples_split": self.min_n,
            "n_jobs": self.n_jobs,
            "random_state": self.random_state,
        }
        params.update(self.engine_args)
        return params


CONFIG_CLASSES: Dict[str, Type[BaseEngineConfig]] = {
    "lightgbm": LightGBMConfig,
    "cart": DecisionTreeConfig,
    "forest": ForestConfig,
}


def get_config_class(engine: str) -> Type[BaseEngineConfig]:
    """Configuration record class for an engine name."""
    try:
        return CONFIG_CLASSES[str(engine).lower()]
    except KeyError:
        raise InvalidArgumentError(
            f"Unsupported engine '{engine}'. Must be one of: {sorted(CONFIG_CLASSES)}",
            error_code="UNKNOWN_ENGINE",
            context={"engine": engine}
        ) from None


def config_from_params(engine: str, **params: Any) -> BaseEngineConfig:
    """Build the engine's record from keyword arguments.

    Names matching a field fill that field and an explicit ``engine_args``
    mapping is always passed through. Any other name is a pass-through
    argument for LightGBM and an error for the other engines.
    """
    config_class = get_config_class(engine)
    known = {f.name for f in fields(config_class)} - {"engine", "engine_args"}

    engine_args = dict(params.pop("engine_args", None) or {})
    field_values = {name: value for name, value in params.items() if name in known}
    extra = {name: value for name, value in params.items() if name not in known}

    if extra and config_class is not LightGBMConfig:
        raise InvalidArgumentError(
            f"Unknown parameter(s) for engine '{engine}': {sorted(extra)}",
            error_code="UNKNOWN_PARAMETER",
            context={"engine": engine, "parameters": sorted(extra)}
        )

    engine_args.update(extra)
    return config_class(engine_args=engine_args, **field_values)
