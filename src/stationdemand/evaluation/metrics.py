"""Evaluation metrics for trip count predictions."""

import numpy as np


def compute_mae(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Compute Mean Absolute Error."""
    return float(np.mean(np.abs(y_true - y_pred)))


def compute_rmse(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Compute Root Mean Squared Error."""
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def compute_mean_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """Compute mean signed error (observed - predicted); positive means under-prediction."""
    return float(np.mean(y_true - y_pred))


def score_predictions(y_true, y_pred) -> dict[str, float]:
    """Compute error metrics, skipping rows whose prediction failed (NaN).

    Args:
        y_true: Observed values
        y_pred: Predicted values, NaN where the model could not score the row

    Returns:
        Dictionary with mae, rmse, mean_error, n_predictions, n_failed.
        Metrics are NaN when no row could be scored.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)

    scored = np.isfinite(y_pred)
    n_scored = int(scored.sum())
    metrics = {
        "n_predictions": n_scored,
        "n_failed": int(len(y_pred) - n_scored),
    }

    if n_scored == 0:
        metrics.update({"mae": np.nan, "rmse": np.nan, "mean_error": np.nan})
        return metrics

    metrics["mae"] = compute_mae(y_true[scored], y_pred[scored])
    metrics["rmse"] = compute_rmse(y_true[scored], y_pred[scored])
    metrics["mean_error"] = compute_mean_error(y_true[scored], y_pred[scored])
    return metrics


def summarize_fold_results(fold_results: list) -> dict[str, tuple[float, float]]:
    """Summarize results across cross-validation folds.

    Args:
        fold_results: List of metric dictionaries from each fold

    Returns:
        Dictionary mapping metric -> (mean, std)
    """
    if not fold_results:
        return {}

    # Get all metric names
    metric_names = fold_results[0].keys()

    # Skip non-numeric metrics
    skip_metrics = {"fold_id", "model", "n_train", "n_test"}

    summary = {}
    for metric in metric_names:
        if metric in skip_metrics:
            continue

        values = [r[metric] for r in fold_results if metric in r]
        if values:
            try:
                numeric_values = np.array([float(v) for v in values])
            except (ValueError, TypeError):
                continue
            numeric_values = numeric_values[np.isfinite(numeric_values)]
            if len(numeric_values):
                summary[metric] = (float(np.mean(numeric_values)), float(np.std(numeric_values)))

    return summary
