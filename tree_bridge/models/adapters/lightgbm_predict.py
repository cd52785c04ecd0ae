# tree_bridge/models/adapters/lightgbm_predict.py
"""Reshaping LightGBM predictions into prediction frames.

``Booster.predict`` returns a 1-D array for regression and binary models
and a ``(n_rows, n_classes)`` array for multiclass models. The helpers here
give every case the same tabular shape, with class columns in the order of
the outcome levels seen at fit time.
"""

from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

from ..base import CLASSIFICATION, REGRESSION, FittedModel
from ...data.encoding import decode_levels
from ...utils.exceptions import InvalidArgumentError
from ...utils.logger import get_logger

logger = get_logger(__name__)

PREDICTION_TYPES = ("numeric", "class", "prob", "raw")

STAGED_TYPES = {
    CLASSIFICATION: (None, "class", "prob"),
    REGRESSION: (None, "numeric"),
}


def predict_lightgbm_classification_prob(
    fitted: FittedModel, new_data: pd.DataFrame, **kwargs: Any
) -> pd.DataFrame:
    """Class probabilities, one column per level named after the level.

    A binary booster yields one probability per row, the probability of the
    second level; it is expanded to ``(1 - p, p)``.
    """
    p = np.asarray(fitted.handle.predict(fitted.prediction_matrix(new_data), **kwargs))

    if p.ndim == 1:
        p = np.column_stack([1 - p, p])

    return pd.DataFrame(p, columns=list(fitted.levels))


def predict_lightgbm_classification_class(
    fitted: FittedModel, new_data: pd.DataFrame, **kwargs: Any
) -> pd.Categorical:
    """Most probable level per row."""
    probs = predict_lightgbm_classification_prob(fitted, new_data, **kwargs)
    winners = probs.to_numpy().argmax(axis=1)
    return decode_levels(winners, fitted.levels)


def predict_lightgbm_classification_raw(
    fitted: FittedModel, new_data: pd.DataFrame, **kwargs: Any
) -> np.ndarray:
    """Untransformed scores as a ``(n_rows, n_outputs)`` array, never collapsed."""
    p = np.asarray(fitted.handle.predict(fitted.prediction_matrix(new_data), raw_score=True, **kwargs))
    return p.reshape(len(new_data), -1)


def predict_lightgbm_regression_numeric(
    fitted: FittedModel, new_data: pd.DataFrame, **kwargs: Any
) -> np.ndarray:
    """Numeric predictions.

    Shape checks are disabled since predicting at an earlier iteration can
    legitimately change the output shape LightGBM expects.
    """
    return np.asarray(
        fitted.handle.predict(
            fitted.prediction_matrix(new_data),
            predict_disable_shape_check=True,
            **kwargs,
        )
    )


def predict_lightgbm_frame(
    fitted: FittedModel,
    new_data: pd.DataFrame,
    type: str,
    **kwargs: Any,
) -> pd.DataFrame:
    """Prediction frame for one prediction type.

    Columns: ``.pred`` (numeric), ``.pred_class`` (class),
    ``.pred_<level>`` (prob) and ``.pred_raw_<i>`` (raw).
    """
    if fitted.mode == REGRESSION:
        if type != "numeric":
            raise InvalidArgumentError(
                f"Regression models only support type='numeric', got '{type}'",
                error_code="PREDICTION_TYPE_INVALID",
                context={"type": type, "mode": fitted.mode}
            )
        return pd.DataFrame({".pred": predict_lightgbm_regression_numeric(fitted, new_data, **kwargs)})

    if type == "class":
        return pd.DataFrame({".pred_class": predict_lightgbm_classification_class(fitted, new_data, **kwargs)})
    if type == "prob":
        probs = predict_lightgbm_classification_prob(fitted, new_data, **kwargs)
        probs.columns = [f".pred_{level}" for level in probs.columns]
        return probs
    if type == "raw":
        raw = predict_lightgbm_classification_raw(fitted, new_data, **kwargs)
        return pd.DataFrame(raw, columns=[f".pred_raw_{i}" for i in range(raw.shape[1])])

    raise InvalidArgumentError(
        f"Unknown prediction type '{type}' for a classification model. "
        f"Must be one of: {['class', 'prob', 'raw']}",
        error_code="PREDICTION_TYPE_INVALID",
        context={"type": type, "mode": fitted.mode}
    )


def _predict_by_tree(
    tree: int,
    fitted: FittedModel,
    new_data: pd.DataFrame,
    type: Optional[str] = None,
) -> pd.DataFrame:
    if fitted.mode == REGRESSION:
        pred = pd.DataFrame(
            {".pred": predict_lightgbm_regression_numeric(fitted, new_data, num_iteration=tree)}
        )
    elif type == "class":
        pred = pd.DataFrame(
            {".pred_class": predict_lightgbm_classification_class(fitted, new_data, num_iteration=tree)}
        )
    else:
        pred = predict_lightgbm_classification_prob(fitted, new_data, num_iteration=tree)
        pred.columns = [f".pred_{level}" for level in pred.columns]

    pred.insert(0, "trees", tree)
    pred.insert(0, ".row", np.arange(len(new_data)))
    return pred


def multi_predict_lightgbm(
    fitted: FittedModel,
    new_data: pd.DataFrame,
    trees: Iterable[int],
    type: Optional[str] = None,
    **kwargs: Any,
) -> pd.DataFrame:
    """Predictions at several boosting-iteration checkpoints.

    Checkpoints are processed in ascending order and every row's sequence is
    reported in that ascending order, whatever order they were requested in.

    Args:
        fitted: A LightGBM ``FittedModel``
        new_data: Predictor table
        trees: Iteration counts to predict at
        type: ``"class"`` or ``"prob"`` (the default) for classification,
            ``"numeric"`` (the default) for regression

    Returns:
        One row per row of ``new_data``; its ``.pred`` cell is a frame with a
        ``trees`` column and the prediction column(s), one row per checkpoint

    Raises:
        InvalidArgumentError: For a ``newdata`` keyword, an unsupported
            ``type``, an empty ``trees`` or a checkpoint below 1
    """
    if "newdata" in kwargs:
        raise InvalidArgumentError(
            "Did you mean to use `new_data` instead of `newdata`?",
            error_code="MISSPELLED_ARGUMENT"
        )

    allowed = STAGED_TYPES[fitted.mode]
    if type not in allowed:
        raise InvalidArgumentError(
            f"Unknown prediction type '{type}' for staged {fitted.mode} predictions. "
            f"Must be one of: {[t for t in allowed if t is not None]}",
            error_code="PREDICTION_TYPE_INVALID",
            context={"type": type, "mode": fitted.mode}
        )

    trees = sorted(int(tree) for tree in trees)
    if not trees:
        raise InvalidArgumentError("`trees` must contain at least one iteration count",
                                   error_code="PARAM_REQUIRED")
    if trees[0] < 1:
        raise InvalidArgumentError(
            f"Iteration counts in `trees` must be at least 1, got {trees[0]}",
            error_code="INVALID_CHECKPOINT",
            context={"trees": trees}
        )

    logger.debug(f"Staged prediction at iterations {trees}")

    long = pd.concat(
        [_predict_by_tree(tree, fitted, new_data, type) for tree in trees],
        ignore_index=True,
    )
    long = long.sort_values([".row", "trees"], kind="mergesort")

    value_columns = [column for column in long.columns if column != ".row"]
    cells = np.empty(len(new_data), dtype=object)
    for row, group in long.groupby(".row", sort=True):
        cells[row] = group[value_columns].reset_index(drop=True)

    return pd.DataFrame({".pred": pd.Series(cells, dtype=object)})
