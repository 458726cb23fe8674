"""Job lifecycle states and the re-runnable generation stages."""

from __future__ import annotations

from enum import Enum


class JobState(str, Enum):
    INIT = "init"
    PLANNING = "planning"
    STYLING = "styling"
    IMAGING = "imaging"
    COPYWRITING = "copywriting"
    SEO = "seo"
    ASSEMBLING = "assembling"
    ASSESSING = "assessing"
    ITERATING = "iterating"
    REPORTING = "reporting"
    DONE = "done"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED, JobState.CANCELLED)


_FORWARD: dict[JobState, set[JobState]] = {
    JobState.INIT: {JobState.PLANNING},
    JobState.PLANNING: {JobState.STYLING},
    JobState.STYLING: {JobState.IMAGING},
    JobState.IMAGING: {JobState.COPYWRITING},
    JobState.COPYWRITING: {JobState.SEO},
    JobState.SEO: {JobState.ASSEMBLING},
    JobState.ASSEMBLING: {JobState.ASSESSING},
    JobState.ASSESSING: {JobState.ITERATING, JobState.REPORTING},
    JobState.ITERATING: {JobState.ASSEMBLING},
    JobState.REPORTING: {JobState.DONE},
}

# Failure and cancellation are reachable from any non-terminal state.
TRANSITIONS: dict[JobState, set[JobState]] = {
    state: targets | {JobState.FAILED, JobState.CANCELLED}
    for state, targets in _FORWARD.items()
}


def can_transition(current: JobState, target: JobState) -> bool:
    return target in TRANSITIONS.get(current, set())


class Stage(str, Enum):
    """Upstream stages the iteration controller may re-run."""

    SECTIONS = "sections"
    STYLE = "style"
    IMAGES = "images"
    COPY = "copy"
    SEO = "seo"


# Execution order; re-runs always follow it.
STAGE_ORDER: list[Stage] = [Stage.SECTIONS, Stage.STYLE, Stage.IMAGES, Stage.COPY, Stage.SEO]

# A re-run stage invalidates the artifacts of these downstream stages.
STAGE_DEPENDENTS: dict[Stage, list[Stage]] = {
    Stage.SECTIONS: [Stage.IMAGES, Stage.COPY, Stage.SEO],
    Stage.STYLE: [],
    Stage.IMAGES: [],
    Stage.COPY: [Stage.SEO],
    Stage.SEO: [],
}
