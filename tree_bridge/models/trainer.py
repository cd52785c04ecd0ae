# tree_bridge/models/trainer.py
"""Uniform fit/predict interface over the wrapped tree engines.

The functions here take an already-split predictor table and outcome
vector, resolve the model mode and configuration record, and hand off to
the engine's adapter. Fitted models come back as ``FittedModel`` values so
prediction dispatches on the recorded engine kind.

Example:
    >>> fitted = fit_model("lightgbm", x, y, feature_fraction=2, early_stopping_rounds=10, validation=0.2)
    >>> predict_model(fitted, x_new, type="prob")
    >>> multi_predict(fitted, x_new, trees=[10, 50, 100])
"""

from typing import Any, Iterable, Optional

import pandas as pd

from .adapters.factory import get_adapter
from .adapters.lightgbm_predict import multi_predict_lightgbm
from .base import CLASSIFICATION, MODES, REGRESSION, EngineKind, FittedModel
from ..config.model_config import BaseEngineConfig, config_from_params
from ..data.encoding import as_outcome, is_categorical
from ..utils.exceptions import DataValidationError, InvalidArgumentError
from ..utils.logger import get_logger
from ..utils.timer import timer

logger = get_logger(__name__)


def _resolve_mode(y: pd.Series, mode: Optional[str]) -> str:
    if mode is None:
        return CLASSIFICATION if is_categorical(y) else REGRESSION

    if mode not in MODES:
        raise InvalidArgumentError(
            f"Unknown mode '{mode}'. Must be one of: {list(MODES)}",
            error_code="UNKNOWN_MODE",
            context={"mode": mode}
        )
    if mode == CLASSIFICATION and not is_categorical(y):
        raise DataValidationError(
            "For a classification model, the outcome should be a categorical, "
            f"not a numeric vector of dtype {y.dtype}",
            error_code="OUTCOME_NOT_CATEGORICAL",
            context={"mode": mode, "dtype": str(y.dtype)}
        )
    if mode == REGRESSION and is_categorical(y):
        raise DataValidationError(
            "For a regression model, the outcome should be numeric, not a categorical",
            error_code="OUTCOME_NOT_NUMERIC",
            context={"mode": mode, "dtype": str(y.dtype)}
        )
    return mode


@timer(name="fit_model")
def fit_model(
    engine: str,
    x: pd.DataFrame,
    y: Any,
    mode: Optional[str] = None,
    config: Optional[BaseEngineConfig] = None,
    **params: Any,
) -> FittedModel:
    """Fit a tree model with the named engine.

    Args:
        engine: ``"lightgbm"``, ``"cart"`` or ``"forest"``
        x: Predictor table; categorical columns use a pandas categorical dtype
        y: Outcome vector. Categorical (or label) outcomes mean classification,
            numeric outcomes mean regression
        mode: Explicit mode, inferred from ``y`` when None
        config: Engine configuration record. When None, one is built from ``params``
        **params: Hyperparameters; for LightGBM, names without a dedicated
            field are passed on to the training call

    Returns:
        The fitted model

    Raises:
        InvalidArgumentError: Unknown engine, mode or parameter, or ``config``
            combined with ``params``
        DataValidationError: Outcome type does not match ``mode``
    """
    adapter = get_adapter(engine)

    if config is None:
        config = config_from_params(engine, **params)
    elif params:
        raise InvalidArgumentError(
            "Pass hyperparameters either through `config` or as keyword arguments, not both",
            error_code="CONFIG_AND_PARAMS",
            context={"parameters": sorted(params)}
        )
    elif not isinstance(config, adapter.config_class):
        raise InvalidArgumentError(
            f"Engine '{engine}' expects a {adapter.config_class.__name__}, "
            f"got {type(config).__name__}",
            error_code="CONFIG_TYPE_MISMATCH"
        )

    y = as_outcome(y)
    mode = _resolve_mode(y, mode)

    logger.info(f"Fitting {engine} {mode} model")
    return adapter.fit(x, y, mode, config)


def _adapter_for(fitted: FittedModel):
    engines = {
        EngineKind.BOOSTED_ENSEMBLE: "lightgbm",
        EngineKind.DECISION_TREE: "cart",
        EngineKind.FOREST: "forest",
    }
    return get_adapter(engines[fitted.kind])


def predict_model(
    fitted: FittedModel,
    new_data: pd.DataFrame,
    type: Optional[str] = None,
) -> pd.DataFrame:
    """Predict for ``new_data``, one row per input row.

    ``type`` defaults to ``"numeric"`` for regression and ``"class"`` for
    classification. ``"prob"`` gives one ``.pred_<level>`` column per level.
    """
    adapter = _adapter_for(fitted)
    if type is None:
        type = "class" if fitted.is_classification else "numeric"

    supported = adapter.supported_types(fitted.mode)
    if type not in supported:
        raise InvalidArgumentError(
            f"Unknown prediction type '{type}' for a {fitted.mode} model. "
            f"Must be one of: {supported}",
            error_code="PREDICTION_TYPE_INVALID",
            context={"type": type, "engine_kind": fitted.kind.value}
        )

    return adapter.predict(fitted, new_data, type)


def multi_predict(
    fitted: FittedModel,
    new_data: pd.DataFrame,
    trees: Iterable[int],
    type: Optional[str] = None,
    **kwargs: Any,
) -> pd.DataFrame:
    """Predictions at several boosting iterations (boosted ensembles only)."""
    if fitted.kind is not EngineKind.BOOSTED_ENSEMBLE:
        raise InvalidArgumentError(
            f"Staged prediction needs a boosted ensemble, got '{fitted.kind.value}'",
            error_code="MULTI_PREDICT_UNSUPPORTED",
            context={"engine_kind": fitted.kind.value}
        )
    return multi_predict_lightgbm(fitted, new_data, trees, type=type, **kwargs)
