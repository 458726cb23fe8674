"""Markdown report builder: renders a PhaseReport to a readable document."""

from __future__ import annotations

from sitesmith.schemas.pipeline import PhaseReport, PhaseStatus

_STATUS_ICONS = {
    PhaseStatus.COMPLETED: "✓",
    PhaseStatus.FALLBACK: "↺",
    PhaseStatus.FAILED: "✗",
    PhaseStatus.SKIPPED: "–",
    PhaseStatus.CANCELLED: "■",
}


def render_phase_report(report: PhaseReport) -> str:
    """Render a PhaseReport into a Markdown string."""
    sections: list[str] = []

    sections.append(f"# Generation Report: {report.business_name}\n")
    sections.append(f"*Job `{report.job_id}`, generated {report.generated_at}*\n")

    # Summary
    summary = report.summary
    sections.append("## Summary\n")
    sections.append(f"- **Aggregate quality score:** {summary.aggregate_score:.1f}/100")
    sections.append(f"- **Meets threshold:** {'yes' if summary.meets_threshold else 'no'}")
    if summary.outcome:
        sections.append(f"- **Outcome:** {summary.outcome}")
    sections.append(f"- **Iterations:** {summary.iterations}")
    sections.append(f"- **Average phase rating:** {summary.average_rating:.1f}")
    if summary.best_phase:
        sections.append(f"- **Best phase:** {summary.best_phase}")
    if summary.worst_phase:
        sections.append(f"- **Weakest phase:** {summary.worst_phase}")
    sections.append("")

    # Phase table
    if report.phases:
        sections.append("## Phases\n")
        sections.append("| # | Phase | Status | Rating | Duration |")
        sections.append("|---|-------|--------|--------|----------|")
        for phase in report.phases:
            icon = _STATUS_ICONS.get(phase.status, "")
            sections.append(
                f"| {phase.number} | {phase.name} | {icon} {phase.status.value} "
                f"| {phase.rating} | {phase.duration_s:.2f}s |"
            )
        sections.append("")

        for phase in report.phases:
            sections.append(f"### {phase.number}. {phase.name}\n")
            if phase.analysis:
                sections.append(f"{phase.analysis}\n")
            for step in phase.steps:
                sections.append(f"- {step}")
            if phase.steps:
                sections.append("")

    # Quality breakdown
    if report.quality:
        sections.append("## Quality Breakdown\n")
        sections.append("| Dimension | Score |")
        sections.append("|-----------|-------|")
        for dim in report.quality.dimensions:
            sections.append(f"| {dim.dimension.label} | {dim.score:.1f}/10 |")
        sections.append("")
        findings = [(dim.dimension.label, f) for dim in report.quality.dimensions for f in dim.findings]
        if findings:
            sections.append("### Findings\n")
            for label, finding in findings:
                sections.append(f"- **{label}:** {finding}")
            sections.append("")

    # Recommendations
    if summary.recommendations:
        sections.append("## Recommendations\n")
        for i, rec in enumerate(summary.recommendations, 1):
            sections.append(f"{i}. {rec}")
        sections.append("")

    return "\n".join(sections)
