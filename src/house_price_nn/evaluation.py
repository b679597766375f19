"""
Evaluation helpers for checking a loaded model against labelled houses.
"""

from typing import Dict, List

import numpy as np
import pandas as pd
from sklearn.metrics import r2_score, mean_absolute_error, mean_absolute_percentage_error

from .predictor import HousePricePredictor
from .preprocessing import records_from_frame


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    safe_mape_threshold: float = 1.0
) -> Dict[str, float]:
    """
    Compute regression metrics in price space.

    MAPE skips rows where y_true <= safe_mape_threshold to avoid division issues.

    Returns:
        Dictionary with r2, mae, mape and mape_excluded_count
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    valid_mask = y_true > safe_mape_threshold
    if valid_mask.sum() > 0:
        mape = mean_absolute_percentage_error(y_true[valid_mask], y_pred[valid_mask]) * 100
    else:
        mape = np.nan

    return {
        'r2': r2_score(y_true, y_pred),
        'mae': mean_absolute_error(y_true, y_pred),
        'mape': mape,
        'mape_excluded_count': int(len(y_true) - valid_mask.sum())
    }


def evaluate_predictor(
    predictor: HousePricePredictor,
    houses: pd.DataFrame,
    target_col: str = 'price'
) -> Dict[str, Dict[str, float]]:
    """
    Score the predictor and a global-mean baseline on labelled houses.

    Args:
        predictor: Initialized predictor
        houses: DataFrame with FeatureRecord columns plus the target column
        target_col: Name of the true price column

    Returns:
        {'model': metrics, 'baseline': metrics}

    Raises:
        RuntimeError: if any prediction fails
    """
    y_true = houses[target_col].to_numpy(dtype=float)
    records = records_from_frame(houses.drop(columns=[target_col]))

    results = predictor.predict_batch(records)
    failures: List[str] = [r.error.message for r in results if not r.ok]
    if failures:
        raise RuntimeError(failures[0])

    y_pred = np.array([r.price for r in results])
    baseline = np.full(len(y_true), y_true.mean())

    return {
        'model': compute_metrics(y_true, y_pred),
        'baseline': compute_metrics(y_true, baseline),
    }
