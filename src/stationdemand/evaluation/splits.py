"""Train/test splitters: contiguous holdout weeks and random k-fold."""

from dataclasses import dataclass

import numpy as np
import pandas as pd


class SplitViolationError(ValueError):
    """Raised when a split overlaps or fails to cover its records."""


@dataclass
class Split:
    """A single train/test partition of panel record ids."""

    split_id: int | str
    train_ids: np.ndarray
    test_ids: np.ndarray


def validate_split(split: Split) -> None:
    """Raise SplitViolationError if train and test share a record or one side is empty."""
    if len(split.train_ids) == 0 or len(split.test_ids) == 0:
        raise SplitViolationError(
            f"Split {split.split_id}: empty {'train' if len(split.train_ids) == 0 else 'test'} set"
        )
    overlap = np.intersect1d(split.train_ids, split.test_ids)
    if len(overlap):
        raise SplitViolationError(
            f"Split {split.split_id}: {len(overlap)} records in both train and test"
        )


def validate_folds(folds: list[np.ndarray], record_ids: np.ndarray) -> None:
    """Raise SplitViolationError unless ``folds`` partition ``record_ids`` exactly."""
    stacked = np.concatenate(folds) if folds else np.empty(0, dtype=np.int64)
    if len(np.unique(stacked)) != len(stacked):
        raise SplitViolationError("Folds are not pairwise disjoint")
    if not np.array_equal(np.sort(stacked), np.sort(np.asarray(record_ids))):
        raise SplitViolationError("Folds do not cover the eligible records exactly")


def _week_key(bound) -> tuple[int | None, int]:
    """Normalize a week bound to ``(iso_year, week)``; plain ints have no year."""
    if isinstance(bound, (list, tuple)):
        if len(bound) != 2:
            raise SplitViolationError(f"Week bound must be a week or (iso_year, week), got {bound}")
        return int(bound[0]), int(bound[1])
    return None, int(bound)


def format_weeks(weeks) -> str:
    """Render a normalized week range, e.g. "36..38" or "2023-W50..2024-W02"."""
    return "..".join(str(w) if y is None else f"{y}-W{w:02d}" for y, w in weeks)


@dataclass
class HoldoutByWeek:
    """Train on a contiguous range of weeks, test on a later contiguous range.

    Week ranges are inclusive ``(first, last)`` bounds. A bound is either an
    ISO week number, for study periods inside one ISO year, or an
    ``(iso_year, week)`` pair, for periods crossing a new year. All four
    bounds must use the same form.
    """

    train_weeks: tuple
    test_weeks: tuple

    def __post_init__(self):
        for label, weeks in (("train", self.train_weeks), ("test", self.test_weeks)):
            if len(weeks) != 2:
                raise SplitViolationError(f"{label} weeks must be a (first, last) pair, got {weeks}")
        self.train_weeks = tuple(_week_key(b) for b in self.train_weeks)
        self.test_weeks = tuple(_week_key(b) for b in self.test_weeks)

        bounds = self.train_weeks + self.test_weeks
        self.with_year = bounds[0][0] is not None
        if any((year is not None) != self.with_year for year, _ in bounds):
            raise SplitViolationError(
                "Week bounds must all be ISO weeks or all be (iso_year, week) pairs"
            )

        train, test = self._ordinals(self.train_weeks), self._ordinals(self.test_weeks)
        for label, weeks, (first, last) in (
            ("train", self.train_weeks, train),
            ("test", self.test_weeks, test),
        ):
            if first > last:
                raise SplitViolationError(f"Invalid {label} week range: {format_weeks(weeks)}")
        if train[1] >= test[0]:
            raise SplitViolationError(
                f"Train weeks {format_weeks(self.train_weeks)} must end before "
                f"test weeks {format_weeks(self.test_weeks)}"
            )

    def _ordinals(self, weeks) -> tuple[int, int]:
        return tuple(year * 100 + week if self.with_year else week for year, week in weeks)

    def split(self, panel: pd.DataFrame) -> Split:
        """Split panel record ids by week.

        Args:
            panel: Panel rows with record_id, week, interval and (for
                year-qualified bounds) iso_year columns

        Returns:
            Split with split_id "holdout"
        """
        week = panel["iso_year"] * 100 + panel["week"] if self.with_year else panel["week"]
        train = panel[week.between(*self._ordinals(self.train_weeks))]
        test = panel[week.between(*self._ordinals(self.test_weeks))]

        split = Split(
            split_id="holdout",
            train_ids=train["record_id"].to_numpy(),
            test_ids=test["record_id"].to_numpy(),
        )
        validate_split(split)

        if train["interval"].max() >= test["interval"].min():
            raise SplitViolationError("Training window is not strictly before the test window")

        return split


@dataclass
class KFoldSplitter:
    """Random k-fold assignment with fold sizes differing by at most one."""

    n_folds: int = 5
    random_seed: int | None = None

    def assign(self, record_ids) -> np.ndarray:
        """Fold label for each record id, aligned with ``record_ids``."""
        n = len(record_ids)
        if not 2 <= self.n_folds <= n:
            raise SplitViolationError(
                f"n_folds must be between 2 and the number of records ({n}), got {self.n_folds}"
            )

        rng = np.random.default_rng(self.random_seed)
        order = rng.permutation(n)

        labels = np.empty(n, dtype=np.int64)
        for fold, positions in enumerate(np.array_split(order, self.n_folds)):
            labels[positions] = fold
        return labels

    def split(self, record_ids) -> list[Split]:
        """Generate one Split per fold; each fold is tested once."""
        record_ids = np.asarray(record_ids)
        labels = self.assign(record_ids)

        splits = [
            Split(
                split_id=fold,
                train_ids=record_ids[labels != fold],
                test_ids=record_ids[labels == fold],
            )
            for fold in range(self.n_folds)
        ]

        validate_folds([s.test_ids for s in splits], record_ids)
        for split in splits:
            validate_split(split)
        return splits
