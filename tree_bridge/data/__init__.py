"""Tree Bridge - Data marshaling.

Conversion of predictor tables and outcome vectors into the numeric
matrices and label vectors the backends consume.

Example:
    >>> from tree_bridge.data import prepare_matrix, categorical_columns
    >>> matrix = prepare_matrix(x)
    >>> categorical_columns(x)
    [1]
"""

from .encoding import (
    as_outcome,
    categorical_columns,
    align_to_training,
    categorical_features_to_int,
    categorical_levels,
    decode_levels,
    encode_outcome,
    is_categorical,
    outcome_levels,
    prepare_matrix,
    prepare_prediction_matrix
)

__all__ = [
    'as_outcome',
    'categorical_columns',
    'align_to_training',
    'categorical_features_to_int',
    'categorical_levels',
    'decode_levels',
    'encode_outcome',
    'is_categorical',
    'outcome_levels',
    'prepare_matrix',
    'prepare_prediction_matrix'
]
