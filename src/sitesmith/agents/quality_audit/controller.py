"""Iteration Controller: decides whether to re-run upstream stages.

The controller is the pipeline's only feedback path. It always terminates:
every decision either stops (threshold met, budget spent, nothing below
the dimension threshold) or targets at least one dimension below it.
"""

from __future__ import annotations

import logging

from sitesmith.schemas.job import STAGE_DEPENDENTS, STAGE_ORDER, Stage
from sitesmith.schemas.quality import (
    DimensionScore,
    IterationDecision,
    IterationOutcome,
    QualityDimension,
    QualityScore,
)

logger = logging.getLogger(__name__)

# Stages whose output influences each dimension.
DIMENSION_STAGES: dict[QualityDimension, list[Stage]] = {
    QualityDimension.VISUAL_DESIGN: [Stage.STYLE],
    QualityDimension.STRUCTURE_UX: [Stage.SECTIONS],
    QualityDimension.CONTENT_QUALITY: [Stage.COPY],
    QualityDimension.CONVERSION_TRUST: [Stage.COPY],
    QualityDimension.SEO_FOUNDATIONS: [Stage.SEO],
    QualityDimension.ORIGINALITY: [Stage.COPY, Stage.IMAGES],
}

MAX_TARGETS = 2


def expand_stages(stages: list[Stage]) -> list[Stage]:
    """Add dependents of each stage, returned in execution order."""
    selected: set[Stage] = set()
    pending = list(stages)
    while pending:
        stage = pending.pop()
        if stage in selected:
            continue
        selected.add(stage)
        pending.extend(STAGE_DEPENDENTS[stage])
    return [s for s in STAGE_ORDER if s in selected]


class IterationController:
    """Bounded re-run policy over the quality score."""

    def __init__(self, *, budget: int, dimension_threshold: float = 7.0) -> None:
        self.budget = budget
        self.dimension_threshold = dimension_threshold

    def targets(self, score: QualityScore) -> list[DimensionScore]:
        """Lowest-scoring dimensions below the dimension threshold.

        Dimensions at or above it are never targeted, even when the aggregate
        misses. Maxed dimensions are never targeted.
        """
        improvable = sorted(
            (d for d in score.dimensions if not d.maxed),
            key=lambda d: (d.score, list(QualityDimension).index(d.dimension)),
        )
        below = [d for d in improvable if d.score < self.dimension_threshold]
        return below[:MAX_TARGETS]

    def decide(self, score: QualityScore, iteration: int) -> IterationDecision:
        if score.meets_threshold:
            return IterationDecision(
                outcome=IterationOutcome.MEETS_THRESHOLD,
                reason=f"Score {score.aggregate:.1f} meets the threshold of {score.threshold:.1f}",
            )
        if iteration >= self.budget:
            return IterationDecision(
                outcome=IterationOutcome.BUDGET_EXHAUSTED,
                reason=(
                    f"Score {score.aggregate:.1f} is below {score.threshold:.1f} after "
                    f"{iteration} iteration(s); budget of {self.budget} exhausted"
                ),
            )

        targets = self.targets(score)
        if not targets:
            return IterationDecision(
                outcome=IterationOutcome.BUDGET_EXHAUSTED,
                reason=f"No dimension is below {self.dimension_threshold:g}; nothing left to improve",
            )

        dimensions = [t.dimension for t in targets]
        stages = expand_stages([s for d in dimensions for s in DIMENSION_STAGES[d]])
        logger.info(
            "Iteration %d: targeting %s, re-running %s",
            iteration + 1,
            ", ".join(d.value for d in dimensions),
            ", ".join(s.value for s in stages),
        )
        return IterationDecision(
            outcome=IterationOutcome.CONTINUE,
            targets=dimensions,
            stages=stages,
            reason=(
                f"Score {score.aggregate:.1f} is below {score.threshold:.1f}; improving "
                + ", ".join(f"{t.dimension.label} ({t.score:.1f})" for t in targets)
            ),
        )
