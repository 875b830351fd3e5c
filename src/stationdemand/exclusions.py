"""Bookkeeping for rows dropped or excluded along the pipeline."""

from collections import Counter
from dataclasses import dataclass, field

UNKNOWN_STATION = "unknown_station"
MALFORMED_TIMESTAMP = "malformed_timestamp"
OUTSIDE_STUDY_PERIOD = "outside_study_period"
JOIN_GAP = "join_gap"
INSUFFICIENT_HISTORY = "insufficient_history"
MODEL_DEGENERACY = "model_degeneracy"

CAUSES = (
    UNKNOWN_STATION,
    MALFORMED_TIMESTAMP,
    OUTSIDE_STUDY_PERIOD,
    JOIN_GAP,
    INSUFFICIENT_HISTORY,
    MODEL_DEGENERACY,
)


@dataclass
class ExclusionReport:
    """Counts of excluded rows per cause, optionally scoped.

    Counts keyed by ``(cause, None)`` belong to the whole pipeline (e.g.
    dropped trip events); ``(cause, scope)`` counts belong to one evaluation,
    e.g. ``"holdout/full"`` or ``"kfold"``.
    """

    counts: Counter = field(default_factory=Counter)

    def add(self, cause: str, n: int, scope: str | None = None) -> None:
        if cause not in CAUSES:
            raise ValueError(f"Unknown exclusion cause: {cause}. Available: {list(CAUSES)}")
        if n:
            self.counts[(cause, scope)] += int(n)

    def merge(self, other: "ExclusionReport") -> "ExclusionReport":
        self.counts.update(other.counts)
        return self

    def total(self, cause: str, scope: str | None = None) -> int:
        """Count for one cause; with ``scope`` given, only that scope's count."""
        if scope is not None:
            return self.counts.get((cause, scope), 0)
        return sum(n for (c, _), n in self.counts.items() if c == cause)

    def to_dict(self) -> dict:
        out: dict = {}
        ordered = sorted(self.counts.items(), key=lambda kv: (kv[0][1] or "", kv[0][0]))
        for (cause, scope), n in ordered:
            key = "pipeline" if scope is None else scope
            out.setdefault(key, {})[cause] = n
        return out
