"""Phase report bookkeeping for one generation job."""

from __future__ import annotations

import time
from datetime import datetime

from sitesmith.schemas.pipeline import PhaseRecord, PhaseReport, PhaseStatus, PhaseSummary
from sitesmith.schemas.quality import IterationDecision, QualityScore

AI_RATING = 100
LOOKUP_RATING = 90
FALLBACK_RATING = 65
LOW_RATING = 70


def image_rating(planned_by_ai: bool, placeholder_share: float) -> int:
    base = AI_RATING if planned_by_ai else FALLBACK_RATING
    return round(base * (1 - 0.35 * placeholder_share))


class PhaseTracker:
    """Builds the PhaseReport incrementally, one phase at a time."""

    def __init__(self, job_id: str, business_name: str) -> None:
        self.report = PhaseReport(job_id=job_id, business_name=business_name)
        self._open: PhaseRecord | None = None
        self._started = 0.0

    @property
    def current(self) -> PhaseRecord | None:
        return self._open

    def begin(self, name: str) -> PhaseRecord:
        if self._open is not None:
            self.complete(rating=0, status=PhaseStatus.FAILED, analysis="Superseded before completion")
        self._open = PhaseRecord(
            number=len(self.report.phases) + 1,
            name=name,
            started_at=datetime.now().isoformat(),
        )
        self._started = time.monotonic()
        return self._open

    def step(self, message: str) -> None:
        if self._open is not None:
            self._open.steps.append(message)

    def complete(
        self,
        *,
        rating: int,
        used_fallback: bool = False,
        analysis: str = "",
        status: PhaseStatus | None = None,
    ) -> PhaseRecord | None:
        record = self._open
        if record is None:
            return None
        record.finished_at = datetime.now().isoformat()
        record.duration_s = round(time.monotonic() - self._started, 3)
        record.rating = max(0, min(100, rating))
        record.used_fallback = used_fallback
        record.analysis = analysis
        record.status = status or (PhaseStatus.FALLBACK if used_fallback else PhaseStatus.COMPLETED)
        self.report.phases.append(record)
        self._open = None
        return record

    def abort(self, status: PhaseStatus, analysis: str) -> None:
        """Close the open phase, if any, with a non-success status."""
        if self._open is not None:
            self.complete(rating=0, status=status, analysis=analysis)

    def finalize(
        self,
        *,
        quality: QualityScore | None,
        decision: IterationDecision | None,
        iterations: int,
        dimension_threshold: float,
    ) -> PhaseReport:
        summary = build_summary(
            self.report.phases,
            quality=quality,
            decision=decision,
            iterations=iterations,
            dimension_threshold=dimension_threshold,
        )
        return self.report.model_copy(update={
            "summary": summary,
            "quality": quality,
            "generated_at": datetime.now().isoformat(),
        })


def build_summary(
    phases: list[PhaseRecord],
    *,
    quality: QualityScore | None,
    decision: IterationDecision | None,
    iterations: int,
    dimension_threshold: float,
) -> PhaseSummary:
    rated = [p for p in phases if p.status not in (PhaseStatus.SKIPPED, PhaseStatus.CANCELLED)]
    summary = PhaseSummary(iterations=iterations)
    if rated:
        summary.average_rating = round(sum(p.rating for p in rated) / len(rated), 1)
        summary.best_phase = max(rated, key=lambda p: p.rating).name
        summary.worst_phase = min(rated, key=lambda p: p.rating).name
    if quality is not None:
        summary.aggregate_score = quality.aggregate
        summary.meets_threshold = quality.meets_threshold
    if decision is not None:
        summary.outcome = decision.outcome.value

    recommendations: list[str] = []
    if quality is not None:
        for dim in sorted(quality.dimensions, key=lambda d: d.score):
            if dim.score < dimension_threshold:
                detail = f": {dim.findings[0]}" if dim.findings else ""
                recommendations.append(f"Improve {dim.dimension.label} ({dim.score:.1f}/10){detail}")

    low = [p.name for p in rated if p.rating < LOW_RATING]
    if low:
        recommendations.append(
            f"Focus on improving {len(low)} phase(s) with ratings below {LOW_RATING}: {', '.join(low)}"
        )

    fallbacks = [p.name for p in rated if p.used_fallback]
    if fallbacks:
        recommendations.append(
            f"{len(fallbacks)} phase(s) used rule-based fallbacks ({', '.join(fallbacks)}); "
            "check that the text and image services are configured and reachable"
        )

    if quality is not None and not quality.meets_threshold:
        recommendations.append(
            f"Final score {quality.aggregate:.1f} is below the threshold of {quality.threshold:.1f} "
            f"after {iterations} iteration(s); review the findings above before publishing"
        )

    summary.recommendations = recommendations
    return summary
