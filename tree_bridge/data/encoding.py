# tree_bridge/data/encoding.py
"""Categorical encoding of predictor tables and outcome vectors.

LightGBM (and the scikit-learn estimators) consume a single homogeneous
numeric matrix. Categorical columns are carried as ``pandas`` categoricals
whose ``categories`` fix the level order; each level is replaced by its
zero-based position in that order.
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..utils.exceptions import DataValidationError, create_error_context
from ..utils.logger import get_logger

logger = get_logger(__name__)


def is_categorical(values: Any) -> bool:
    """Return True for a column or series with a categorical dtype."""
    return isinstance(getattr(values, "dtype", None), pd.CategoricalDtype)


def categorical_columns(x: pd.DataFrame) -> List[int]:
    """Positions of the categorical columns of ``x``.

    Args:
        x: Predictor table

    Returns:
        Zero-based column positions, empty when no column is categorical
    """
    return [i for i, (_, column) in enumerate(x.items()) if is_categorical(column)]


def categorical_features_to_int(x: pd.DataFrame, cat_indices: Sequence[int]) -> pd.DataFrame:
    """Replace the listed categorical columns by their zero-based level codes.

    Missing values become ``NaN`` so LightGBM treats them as missing rather
    than as a level.

    Args:
        x: Predictor table
        cat_indices: Positions returned by ``categorical_columns``

    Returns:
        A copy of ``x``; the input table is left untouched
    """
    encoded = x.copy()
    for i in cat_indices:
        codes = encoded.iloc[:, i].cat.codes.astype("float64")
        encoded.isetitem(i, codes.where(codes >= 0, np.nan))
    return encoded


def _check_column_types(x: pd.DataFrame) -> None:
    unsupported = [
        name for name, column in x.items()
        if not is_categorical(column) and not pd.api.types.is_numeric_dtype(column)
    ]
    if unsupported:
        raise DataValidationError(
            f"Predictor columns must be numeric or categorical; convert {unsupported} "
            f"with `astype('category')` to fix the level order",
            error_code="UNSUPPORTED_COLUMN_TYPE",
            context=create_error_context(columns=unsupported)
        )


def prepare_matrix(x: pd.DataFrame) -> np.ndarray:
    """Encode a predictor table into the backends' native matrix format.

    Args:
        x: Predictor table with numeric and categorical columns

    Returns:
        Row-major ``float64`` matrix, column order preserved

    Raises:
        DataValidationError: If a column is neither numeric nor categorical
    """
    _check_column_types(x)
    encoded = categorical_features_to_int(x, categorical_columns(x))
    return np.ascontiguousarray(encoded.to_numpy(dtype="float64"))


def categorical_levels(x: pd.DataFrame) -> Dict[str, List[Any]]:
    """Level order of every categorical column, keyed by column name."""
    return {str(name): list(column.cat.categories) for name, column in x.items() if is_categorical(column)}


def align_to_training(
    new_data: pd.DataFrame,
    feature_names: Sequence[str],
    levels: Dict[str, List[Any]],
) -> pd.DataFrame:
    """Put ``new_data`` in the column order and level order seen at fit time.

    Columns are matched by name and reordered; extra columns are ignored.
    Categorical columns are recoded against the training levels so each
    level keeps the integer code it had during training.

    Raises:
        DataValidationError: For missing columns, a categorical column given
            as numbers, or levels unknown at fit time
    """
    if not isinstance(new_data, pd.DataFrame):
        raise DataValidationError(
            f"New data must be a pandas DataFrame, got {type(new_data).__name__}",
            error_code="PREDICTORS_NOT_DATAFRAME"
        )

    by_name = {str(name): name for name in new_data.columns}
    missing = [name for name in feature_names if name not in by_name]
    if missing:
        raise DataValidationError(
            f"New data is missing predictor column(s) used at fit time: {missing}",
            error_code="MISSING_COLUMNS",
            context=create_error_context(missing=missing, expected=list(feature_names))
        )

    aligned = new_data[[by_name[name] for name in feature_names]].copy()

    for position, name in enumerate(feature_names):
        if name not in levels:
            continue

        column = aligned.iloc[:, position]
        if pd.api.types.is_numeric_dtype(column) and not is_categorical(column):
            raise DataValidationError(
                f"Column '{name}' was categorical at fit time but is numeric in the new data",
                error_code="COLUMN_TYPE_MISMATCH",
                context=create_error_context(column=name, dtype=str(column.dtype))
            )

        values = column.astype(object) if is_categorical(column) else column
        unknown = sorted({str(v) for v in values.dropna().unique() if v not in levels[name]})
        if unknown:
            raise DataValidationError(
                f"Column '{name}' has level(s) not seen at fit time: {unknown}",
                error_code="UNKNOWN_LEVELS",
                context=create_error_context(column=name, unknown=unknown, levels=levels[name])
            )

        aligned.isetitem(position, pd.Categorical(values, categories=levels[name]))

    return aligned


def prepare_prediction_matrix(
    new_data: pd.DataFrame,
    feature_names: Sequence[str],
    levels: Dict[str, List[Any]],
) -> np.ndarray:
    """``prepare_matrix`` for new data, after ``align_to_training``."""
    return prepare_matrix(align_to_training(new_data, feature_names, levels))


def decode_levels(codes: Sequence[int], levels: Sequence[Any]) -> pd.Categorical:
    """Map zero-based codes back to their level labels."""
    return pd.Categorical.from_codes(np.asarray(codes, dtype=int), categories=list(levels))


def as_outcome(y: Any) -> pd.Series:
    """Wrap an outcome vector as a Series, coercing labels to a categorical.

    Numeric outcomes (booleans excluded) and categoricals are returned as is.
    Any other labels become a categorical with sorted unique levels.
    """
    series = y if isinstance(y, pd.Series) else pd.Series(y)

    if is_categorical(series):
        return series
    if pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series):
        return series

    logger.debug(f"Coercing outcome of dtype {series.dtype} to a categorical")
    return series.astype("category")


def outcome_levels(y: pd.Series) -> Optional[List[Any]]:
    """Class levels of a categorical outcome in order, None for numeric outcomes."""
    if is_categorical(y):
        return list(y.cat.categories)
    return None


def encode_outcome(y: pd.Series) -> np.ndarray:
    """Numeric label vector handed to the backend.

    Categorical outcomes become zero-based level codes; numeric outcomes
    pass through unchanged, also when an explicit objective such as
    ``"binary"`` is supplied, so such labels must already be backend-ready.
    """
    if is_categorical(y):
        return y.cat.codes.to_numpy(dtype="float64")
    return y.to_numpy(dtype="float64")
