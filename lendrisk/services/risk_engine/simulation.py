"""Simulation — impact analysis of a candidate configuration before activation.

Supports:
  - Impact comparison: re-run a batch of snapshots under the current and a
    candidate configuration and compare recommendation distributions
  - Batch summary: count, mean score and per-category / recommendation counts
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Hashable, Iterable, Mapping, Optional, Sequence, Union

from lendrisk.models.risk import LoanRecommendation, RiskLevel
from lendrisk.services.risk_engine.configuration import RiskConfiguration
from lendrisk.services.risk_engine.engine import AssessmentResult, RiskEngine
from lendrisk.services.risk_engine.exceptions import IncompleteInputError
from lendrisk.services.risk_engine.snapshot import ApplicantSnapshot

logger = logging.getLogger(__name__)


def _empty_counts() -> dict[str, int]:
    return {r.value: 0 for r in LoanRecommendation}


@dataclass
class ImpactAnalysis:
    current_version: str = ""
    candidate_version: str = ""
    total_compared: int = 0
    current_counts: dict[str, int] = field(default_factory=_empty_counts)
    candidate_counts: dict[str, int] = field(default_factory=_empty_counts)
    newly_approved: int = 0
    newly_rejected: int = 0
    changed_decisions: list[dict] = field(default_factory=list)
    failed: list[dict] = field(default_factory=list)

    @property
    def approval_rate_change(self) -> float:
        """Change in approval rate, percentage points."""
        if not self.total_compared:
            return 0.0
        delta = self.candidate_counts["APPROVE"] - self.current_counts["APPROVE"]
        return round(delta / self.total_compared * 100, 2)


@dataclass
class AssessmentSummary:
    count: int = 0
    mean_score: float = 0.0
    by_category: dict[str, int] = field(default_factory=lambda: {c.value: 0 for c in RiskLevel})
    by_recommendation: dict[str, int] = field(default_factory=_empty_counts)
    human_review_count: int = 0


def compare_configurations(
    snapshots: Union[Mapping[Hashable, ApplicantSnapshot], Sequence[ApplicantSnapshot]],
    current: RiskConfiguration,
    candidate: RiskConfiguration,
    *,
    engine: Optional[RiskEngine] = None,
    assessed_at: Optional[datetime] = None,
) -> ImpactAnalysis:
    """Old vs. new recommendation distribution over the same snapshots.

    Snapshots may be given as a mapping (key -> snapshot) or a sequence
    (keyed by position).  A snapshot that fails assessment is listed in
    ``failed`` and excluded from the counts.
    """
    engine = engine or RiskEngine()
    assessed_at = assessed_at or datetime.now(timezone.utc)
    items = snapshots.items() if isinstance(snapshots, Mapping) else enumerate(snapshots)

    analysis = ImpactAnalysis(current_version=current.version, candidate_version=candidate.version)

    for key, snapshot in items:
        try:
            old = engine.assess(snapshot, current, assessed_at=assessed_at, allow_inactive=True)
            new = engine.assess(snapshot, candidate, assessed_at=assessed_at, allow_inactive=True)
        except IncompleteInputError as exc:
            analysis.failed.append({"key": key, "factor": exc.factor, "field": exc.field, "error": str(exc)})
            continue

        analysis.total_compared += 1
        analysis.current_counts[old.recommendation.value] += 1
        analysis.candidate_counts[new.recommendation.value] += 1

        if old.recommendation != new.recommendation:
            if new.recommendation == LoanRecommendation.APPROVE:
                analysis.newly_approved += 1
            elif new.recommendation == LoanRecommendation.REJECT:
                analysis.newly_rejected += 1
            analysis.changed_decisions.append({
                "key": key,
                "current_recommendation": old.recommendation.value,
                "candidate_recommendation": new.recommendation.value,
                "current_score": old.risk_score,
                "candidate_score": new.risk_score,
                "score_change": round(new.risk_score - old.risk_score, 2),
            })

    logger.info(
        "Compared %s -> %s over %d snapshot(s): %d changed, %d failed",
        current.version, candidate.version, analysis.total_compared,
        len(analysis.changed_decisions), len(analysis.failed),
    )
    return analysis


def summarize_results(results: Iterable[AssessmentResult]) -> AssessmentSummary:
    summary = AssessmentSummary()
    total = 0.0
    for result in results:
        summary.count += 1
        total += result.risk_score
        summary.by_category[result.risk_category.value] += 1
        summary.by_recommendation[result.recommendation.value] += 1
        if result.human_review_required:
            summary.human_review_count += 1
    if summary.count:
        summary.mean_score = round(total / summary.count, 2)
    return summary
