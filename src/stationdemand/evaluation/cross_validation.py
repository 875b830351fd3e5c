"""Holdout-by-week and k-fold cross-validation of model specifications."""

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import pandas as pd
from tqdm import tqdm

from ..exclusions import INSUFFICIENT_HISTORY, JOIN_GAP, MODEL_DEGENERACY, ExclusionReport
from ..models import DegenerateFitError, FeatureGroup, ModelSpec, OLSModel, group_columns
from ..panel.lags import DEFAULT_LAG_OFFSETS
from .metrics import score_predictions, summarize_fold_results
from .splits import HoldoutByWeek, KFoldSplitter, format_weeks

logger = logging.getLogger(__name__)

PREDICTION_COLUMNS = [
    "split_id",
    "model",
    "record_id",
    "station_id",
    "interval",
    "week",
    "hour",
    "day_of_week",
    "observed",
    "predicted",
]


class Stage(Enum):
    """Holdout evaluation stages, in order."""

    IDLE = "idle"
    SPLIT = "split"
    FIT_PER_MODEL = "fit_per_model"
    PREDICT_PER_WEEK = "predict_per_week"
    SCORE = "score"


@dataclass
class EvaluationResult:
    """Predictions and scores from one evaluation protocol.

    Attributes:
        predictions: One row per (split, model, record), PREDICTION_COLUMNS
        scores: Metrics per (model, week) for holdout or per (model, fold) for k-fold
        summary: model -> metric -> (mean, std) for k-fold, or
            model -> metric -> value over all test rows for holdout
        report: Rows excluded or unscored, per cause
    """

    predictions: pd.DataFrame
    scores: pd.DataFrame
    summary: dict = field(default_factory=dict)
    report: ExclusionReport = field(default_factory=ExclusionReport)


def exclusion_masks(
    panel: pd.DataFrame,
    specs,
    lag_offsets=DEFAULT_LAG_OFFSETS,
) -> tuple[pd.Series, pd.Series]:
    """Rows unusable by any of ``specs``, split by cause.

    Returns:
        (join_gap, insufficient_history) boolean Series. A row missing both
        a joined attribute and lag history counts as a join gap only.
    """
    lag_cols = set(group_columns(FeatureGroup.LAG, lag_offsets).all)
    required = set()
    for spec in specs:
        required.update(spec.columns(lag_offsets).all)

    history_cols = sorted(required & lag_cols)
    other_cols = sorted(required - lag_cols)

    gap = panel[other_cols].isna().any(axis=1) if other_cols else pd.Series(False, index=panel.index)
    history = (
        panel[history_cols].isna().any(axis=1) & ~gap
        if history_cols
        else pd.Series(False, index=panel.index)
    )
    return gap, history


def eligible_rows(
    panel: pd.DataFrame,
    specs,
    lag_offsets=DEFAULT_LAG_OFFSETS,
    report: ExclusionReport | None = None,
    scope: str | None = None,
) -> pd.DataFrame:
    """Rows with every feature ``specs`` require; excluded rows are counted in ``report``."""
    gap, history = exclusion_masks(panel, specs, lag_offsets)
    if report is not None:
        report.add(JOIN_GAP, gap.sum(), scope)
        report.add(INSUFFICIENT_HISTORY, history.sum(), scope)
    return panel[~(gap | history)]


def fit_model(spec: ModelSpec, train: pd.DataFrame, lag_offsets=DEFAULT_LAG_OFFSETS):
    """Fit the OLS model for a spec, or return None if the fit is degenerate."""
    model = OLSModel(spec, lag_offsets)
    try:
        return model.fit(train)
    except DegenerateFitError as e:
        logger.warning("Model fit failed, predictions will be null: %s", e)
        return None


def predict_rows(model, rows: pd.DataFrame) -> np.ndarray:
    """Predict ``rows``; every row is NaN when the model could not be fitted."""
    if model is None:
        return np.full(len(rows), np.nan)
    return model.predict(rows)


def _prediction_frame(rows: pd.DataFrame, split_id, model_name: str, predicted) -> pd.DataFrame:
    out = pd.DataFrame(
        {
            "split_id": split_id,
            "model": model_name,
            "record_id": rows["record_id"].to_numpy(),
            "station_id": rows["station_id"].to_numpy(),
            "interval": rows["interval"].to_numpy(),
            "week": rows["week"].to_numpy(),
            "hour": rows["hour"].to_numpy(),
            "day_of_week": rows["day_of_week"].to_numpy(),
            "observed": rows["trip_count"].to_numpy(dtype=float),
            "predicted": np.asarray(predicted, dtype=float),
        }
    )
    return out[PREDICTION_COLUMNS]


def _concat_predictions(frames: list[pd.DataFrame]) -> pd.DataFrame:
    if not frames:
        return pd.DataFrame(columns=PREDICTION_COLUMNS)
    return pd.concat(frames, ignore_index=True)


def score_by(predictions: pd.DataFrame, keys: list[str]) -> pd.DataFrame:
    """Score predictions per group of ``keys`` (failed predictions skipped and counted)."""
    rows = []
    for key, group in predictions.groupby(keys, sort=True):
        key = key if isinstance(key, tuple) else (key,)
        rows.append({**dict(zip(keys, key)), **score_predictions(group["observed"], group["predicted"])})
    return pd.DataFrame(rows, columns=keys + ["n_predictions", "n_failed", "mae", "rmse", "mean_error"])


class HoldoutEvaluator:
    """Train each spec on earlier weeks and score it week by week on later ones.

    Stages: Idle -> Split -> FitPerModel -> PredictPerWeek -> Score. The split
    is validated before any model is fitted.
    """

    def __init__(
        self,
        specs,
        splitter: HoldoutByWeek,
        lag_offsets=DEFAULT_LAG_OFFSETS,
        verbose: bool = True,
    ):
        self.specs = tuple(specs)
        self.splitter = splitter
        self.lag_offsets = tuple(lag_offsets)
        self.verbose = verbose
        self.stage = Stage.IDLE

    def _advance(self, stage: Stage) -> None:
        logger.debug("Holdout evaluation: %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def run(self, panel: pd.DataFrame) -> EvaluationResult:
        """Evaluate every spec on the holdout split of ``panel``."""
        report = ExclusionReport()

        self._advance(Stage.SPLIT)
        split = self.splitter.split(panel)
        indexed = panel.set_index("record_id", drop=False)
        train_all = indexed.loc[split.train_ids]
        test_all = indexed.loc[split.test_ids]

        if self.verbose:
            train_label = format_weeks(self.splitter.train_weeks)
            test_label = format_weeks(self.splitter.test_weeks)
            print(
                f"\nHoldout: train weeks {train_label} ({len(train_all):,} rows), "
                f"test weeks {test_label} ({len(test_all):,} rows)"
            )

        frames = []
        for spec in tqdm(self.specs, desc="Holdout models", disable=not self.verbose):
            scope = f"holdout/{spec.name}"
            train = eligible_rows(train_all, [spec], self.lag_offsets, report, scope)
            test = eligible_rows(test_all, [spec], self.lag_offsets, report, scope)

            self._advance(Stage.FIT_PER_MODEL)
            model = fit_model(spec, train, self.lag_offsets)

            self._advance(Stage.PREDICT_PER_WEEK)
            for week, week_rows in test.groupby("week", sort=True):
                predicted = predict_rows(model, week_rows)
                report.add(MODEL_DEGENERACY, np.isnan(predicted).sum(), scope)
                frames.append(_prediction_frame(week_rows, split.split_id, spec.name, predicted))

        self._advance(Stage.SCORE)
        predictions = _concat_predictions(frames)
        scores = score_by(predictions, ["model", "week"])
        summary = {
            name: score_predictions(group["observed"], group["predicted"])
            for name, group in predictions.groupby("model", sort=False)
        }

        if self.verbose:
            print("\nHoldout MAE by model:")
            for spec in self.specs:
                if spec.name in summary:
                    m = summary[spec.name]
                    print(
                        f"  {spec.name}: MAE={m['mae']:.3f}, RMSE={m['rmse']:.3f} "
                        f"({m['n_failed']} failed)"
                    )

        return EvaluationResult(predictions=predictions, scores=scores, summary=summary, report=report)


def run_cross_validation(
    panel: pd.DataFrame,
    specs,
    n_folds: int = 5,
    random_seed: int | None = None,
    lag_offsets=DEFAULT_LAG_OFFSETS,
    verbose: bool = True,
) -> EvaluationResult:
    """Run k-fold cross-validation over the feature-complete panel.

    Rows are eligible when complete for every spec, so all specs share one
    fold assignment. Folds are validated before any model is fitted.

    Args:
        panel: Panel with lag features
        specs: Model specs to evaluate
        n_folds: Number of folds
        random_seed: Seed for fold assignment
        lag_offsets: Lag offsets present in the panel
        verbose: Whether to print progress

    Returns:
        EvaluationResult with per-fold scores and mean/std summary per model
    """
    specs = tuple(specs)
    report = ExclusionReport()

    eligible = eligible_rows(panel, specs, lag_offsets, report, "kfold")
    splitter = KFoldSplitter(n_folds=n_folds, random_seed=random_seed)
    splits = splitter.split(eligible["record_id"].to_numpy())
    indexed = eligible.set_index("record_id", drop=False)

    if verbose:
        print(f"\nRunning {n_folds}-fold cross-validation on {len(eligible):,} rows...")

    fold_results = []
    frames = []
    for split in tqdm(splits, desc="CV Folds", disable=not verbose):
        train = indexed.loc[split.train_ids]
        test = indexed.loc[split.test_ids]

        for spec in specs:
            model = fit_model(spec, train, lag_offsets)
            predicted = predict_rows(model, test)
            report.add(MODEL_DEGENERACY, np.isnan(predicted).sum(), f"kfold/{spec.name}")

            metrics = score_predictions(test["trip_count"], predicted)
            metrics["fold_id"] = split.split_id
            metrics["model"] = spec.name
            metrics["n_train"] = len(train)
            metrics["n_test"] = len(test)
            fold_results.append(metrics)
            frames.append(_prediction_frame(test, split.split_id, spec.name, predicted))

            if verbose:
                print(
                    f"  Fold {split.split_id} {spec.name}: "
                    f"MAE={metrics['mae']:.3f}, RMSE={metrics['rmse']:.3f}"
                )

    summary = {
        spec.name: summarize_fold_results([r for r in fold_results if r["model"] == spec.name])
        for spec in specs
    }

    if verbose:
        print("\n" + "=" * 60)
        print("Cross-Validation Summary (mean ± std across folds):")
        print("=" * 60)
        for name, metrics in summary.items():
            for metric in ("mae", "rmse"):
                if metric in metrics:
                    mean, std = metrics[metric]
                    print(f"  {name} {metric}: {mean:.3f} ± {std:.3f}")

    scores = pd.DataFrame(fold_results)
    return EvaluationResult(
        predictions=_concat_predictions(frames),
        scores=scores,
        summary=summary,
        report=report,
    )
