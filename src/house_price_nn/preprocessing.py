"""
Inference-time Preprocessing for House Price Prediction

This module turns a structured house record into the numeric input the
network expects, and maps the network output back to a price:
1. Feature encoding (fixed column order + furnishing one-hot)
2. Z-score normalization with training-set statistics
3. Output denormalization

CRITICAL: FEATURE_ORDER must match the column order used when mean_x, std_x
and w1 were produced. Reordering it silently corrupts every prediction.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field

# Furnishing category -> one-hot column (training data column names)
FURNISHING_COLUMNS = {
    'furnished': 'furnishingstatus_furnished',
    'semi-furnished': 'furnishingstatus_semi-furnished',
    'unfurnished': 'furnishingstatus_unfurnished',
}

# Record field -> training column name, where they differ
RECORD_TO_COLUMN = {
    'hotwater': 'hotwaterheating',
    'ac': 'airconditioning',
}

FEATURE_ORDER = [
    'area',
    'bedrooms',
    'bathrooms',
    'stories',
    'mainroad',
    'guestroom',
    'basement',
    'hotwaterheating',
    'airconditioning',
    'parking',
    'prefarea',
    *FURNISHING_COLUMNS.values(),
]

FEATURE_COUNT = len(FEATURE_ORDER)

EXAMPLE_RECORD = {
    "area": 7420,
    "bedrooms": 4,
    "bathrooms": 2,
    "stories": 3,
    "mainroad": 1,
    "guestroom": 0,
    "basement": 0,
    "hotwater": 0,
    "ac": 1,
    "parking": 2,
    "prefarea": 1,
    "furnishing": "furnished",
}


class FeatureRecord(BaseModel):
    """
    Structured house attributes for one prediction request.

    Binary flags are expected as 0/1. Only type coercion is applied here,
    values are not range-checked.
    """
    area: float = Field(..., description="Plot area")
    bedrooms: float = Field(..., description="Number of bedrooms")
    bathrooms: float = Field(..., description="Number of bathrooms")
    stories: float = Field(..., description="Number of stories")
    mainroad: int = Field(..., description="Faces a main road (0/1)")
    guestroom: int = Field(..., description="Has a guest room (0/1)")
    basement: int = Field(..., description="Has a basement (0/1)")
    hotwater: int = Field(..., description="Has hot water heating (0/1)")
    ac: int = Field(..., description="Has air conditioning (0/1)")
    parking: float = Field(..., description="Number of parking spaces")
    prefarea: int = Field(..., description="Located in a preferred area (0/1)")
    furnishing: Optional[str] = Field(
        None, description="'furnished', 'semi-furnished' or 'unfurnished'"
    )


RecordLike = Union[FeatureRecord, Mapping[str, Any]]


def _record_to_row(record: RecordLike) -> Dict[str, Any]:
    if not isinstance(record, FeatureRecord):
        record = FeatureRecord.model_validate(dict(record))
    return record.model_dump()


def build_feature_frame(records: Iterable[RecordLike]) -> pd.DataFrame:
    """
    Encode records into a DataFrame with FEATURE_ORDER columns.

    Unrecognized furnishing values leave all three furnishing flags at 0.

    Args:
        records: FeatureRecord instances or mappings with the same keys

    Returns:
        float DataFrame, one row per record, columns in FEATURE_ORDER
    """
    rows = [_record_to_row(record) for record in records]
    df = pd.DataFrame(rows, columns=list(FeatureRecord.model_fields))
    df = df.rename(columns=RECORD_TO_COLUMN)

    # One-hot furnishing
    for category, column in FURNISHING_COLUMNS.items():
        df[column] = (df['furnishing'] == category).astype(int)

    return df[FEATURE_ORDER].astype(float)


def encode_features(record: RecordLike) -> np.ndarray:
    """Encode a single record into its 14-element feature vector."""
    return build_feature_frame([record]).to_numpy()[0]


def normalize_features(features: np.ndarray, normalization) -> np.ndarray:
    """
    Z-score normalize features with training statistics.

    A single feature vector comes back as a [1, 14] row matrix, since the
    forward pass operates on row batches. A 2-D batch keeps its shape.
    """
    X = np.atleast_2d(np.asarray(features, dtype=float))
    return (X - normalization.mean_x) / normalization.std_x


def normalize_target(price, normalization):
    """Map a price into the network's normalized output space."""
    return (price - normalization.mean_y[0]) / normalization.std_y[0]


def denormalize_prediction(prediction, normalization):
    """Map a normalized network output back to a price."""
    return prediction * normalization.std_y[0] + normalization.mean_y[0]


def feature_vector_to_dict(features: np.ndarray) -> Dict[str, float]:
    """Label a feature vector with its column names (for logging and debugging)."""
    return {name: float(value) for name, value in zip(FEATURE_ORDER, features)}


def records_from_frame(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a DataFrame of raw record columns into record mappings."""
    return df.to_dict(orient='records')
