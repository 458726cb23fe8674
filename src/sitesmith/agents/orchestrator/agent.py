"""Pipeline Orchestrator: sequences the generation stages for one job.

Flow:
    Planning → Styling → Imaging → Copywriting → SEO → Assembling
    → Assessing → (Iterating → Assembling → Assessing)* → Reporting → Done

Stage-level AI failures never abort a job. Only an invalid profile, an
unwritable output sink or a cancellation end it early.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Mapping

from pydantic import ValidationError
from rich.text import Text

from sitesmith.agents.assembler.agent import SiteAssembler
from sitesmith.agents.assembler.pages import plan_pages, select_pages
from sitesmith.agents.base import CompletionClient, EventCallback
from sitesmith.agents.copywriter.agent import CopywriterAgent
from sitesmith.agents.image_planner.agent import ImagePlannerAgent
from sitesmith.agents.image_planner.generator import ImageGenerator
from sitesmith.agents.orchestrator.report import (
    AI_RATING,
    FALLBACK_RATING,
    LOOKUP_RATING,
    PhaseTracker,
    image_rating,
)
from sitesmith.agents.quality_audit.agent import QualityAssessor
from sitesmith.agents.quality_audit.controller import IterationController
from sitesmith.agents.section_planner.agent import SectionPlannerAgent
from sitesmith.agents.seo.agent import SEOAgent
from sitesmith.agents.style_designer.agent import StyleDesignerAgent
from sitesmith.agents.style_designer.theme import ThemeEngine
from sitesmith.errors import (
    InvalidProfileError,
    JobCancelledError,
    OutputSinkError,
    PipelineError,
    SitesmithError,
)
from sitesmith.industries import IndustryProfile, resolve_industry
from sitesmith.schemas.config import BusinessProfile, PipelineSettings, Tier, TierLimits
from sitesmith.schemas.job import JobState, Stage, can_transition
from sitesmith.schemas.pipeline import JobError, JobResult, PhaseReport, PhaseStatus, PipelineState
from sitesmith.schemas.quality import IterationDecision, IterationOutcome, QualityScore
from sitesmith.schemas.site import PageTemplate
from sitesmith.shared.progress import ProgressChannel
from sitesmith.shared.storage import FileSystemSink, OutputSink

logger = logging.getLogger(__name__)

PIPELINE_VERSION = "0.4.0"

# Progress percentage announced on entry to each state.
_STATE_PERCENT: dict[JobState, int] = {
    JobState.PLANNING: 5,
    JobState.STYLING: 15,
    JobState.IMAGING: 25,
    JobState.COPYWRITING: 45,
    JobState.SEO: 60,
    JobState.ASSEMBLING: 70,
    JobState.ASSESSING: 80,
    JobState.ITERATING: 82,
    JobState.REPORTING: 95,
}


class PipelineOrchestrator:
    """Runs one generation job end to end and returns a ``JobResult``.

    Each orchestrator owns its job's artifacts. The client (and the
    semaphores it holds) may be shared across concurrent orchestrators.
    """

    def __init__(
        self,
        client: CompletionClient,
        *,
        settings: PipelineSettings | None = None,
        sink: OutputSink | None = None,
        channel: ProgressChannel | None = None,
        assessor: QualityAssessor | None = None,
        job_id: str | None = None,
    ) -> None:
        self.job_id = job_id or uuid.uuid4().hex
        self.settings = settings or PipelineSettings()
        self.sink = sink or FileSystemSink(self.settings.output_directory)
        self.channel = channel or ProgressChannel(self.job_id)
        if not self.channel.job_id:
            self.channel.job_id = self.job_id
        self.assessor = assessor or QualityAssessor()
        self.controller = IterationController(
            budget=self.settings.iteration_budget,
            dimension_threshold=self.settings.dimension_threshold,
        )

        self.section_planner = SectionPlannerAgent(client)
        self.style_designer = StyleDesignerAgent(client)
        self.theme_engine = ThemeEngine()
        self.image_planner = ImagePlannerAgent(client)
        self.image_generator = ImageGenerator(
            client,
            concurrency=self.settings.image_concurrency,
            timeout=self.settings.image_timeout,
            download=self.settings.download_images,
        )
        self.copywriter = CopywriterAgent(client)
        self.seo = SEOAgent(client)
        self.assembler = SiteAssembler()

        self.status = JobState.INIT
        self._cancel_requested = False

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def cancel(self) -> None:
        """Request cancellation; honoured at the next stage boundary."""
        logger.info("Cancellation requested for job %s", self.job_id)
        self._cancel_requested = True

    def module_versions(self) -> dict[str, str]:
        return {
            "section_planner": self.section_planner.VERSION,
            "style_designer": self.style_designer.VERSION,
            "theme_engine": self.theme_engine.VERSION,
            "image_planner": self.image_planner.VERSION,
            "image_generator": self.image_generator.VERSION,
            "copywriter": self.copywriter.VERSION,
            "seo": self.seo.VERSION,
            "assembler": self.assembler.VERSION,
            "quality_assessor": self.assessor.VERSION,
        }

    def _checkpoint(self) -> None:
        if self._cancel_requested:
            raise JobCancelledError("Job cancelled by request")

    def _transition(self, target: JobState, message: str) -> None:
        if not can_transition(self.status, target):
            raise RuntimeError(f"Invalid job transition {self.status.value} -> {target.value}")
        logger.debug("Job %s: %s -> %s", self.job_id, self.status.value, target.value)
        self.status = target
        self.channel.publish(target.value, _STATE_PERCENT.get(target, self.channel.percent), message)

    def _enter(self, target: JobState, message: str) -> None:
        self._checkpoint()
        self._transition(target, message)

    def _events(self, tracker: PhaseTracker) -> EventCallback:
        """Stage event callback: records a step and forwards it to the channel."""
        def on_event(message: str) -> None:
            plain = Text.from_markup(message).plain
            tracker.step(plain)
            self.channel.publish(self.status.value, self.channel.percent, plain)

        return on_event

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    async def run(
        self,
        profile: BusinessProfile | Mapping[str, Any],
        tier: Tier | str = Tier.PROFESSIONAL,
    ) -> JobResult:
        try:
            profile, tier = self._validate(profile, tier)
        except InvalidProfileError as exc:
            logger.error("Rejected generation request: %s", exc.message)
            return self._terminate(JobState.FAILED, error=exc)

        tracker = PhaseTracker(self.job_id, profile.name)
        state = PipelineState(profile=profile, tier=tier)
        quality: QualityScore | None = None
        decision: IterationDecision | None = None

        try:
            decision = await self._generate(state, tracker)
            quality = state.quality

            self._enter(JobState.REPORTING, "Writing site and phase report")
            report = tracker.finalize(
                quality=quality,
                decision=decision,
                iterations=state.iteration,
                dimension_threshold=self.settings.dimension_threshold,
            )
            locator = await self._write(state, report)
        except JobCancelledError as exc:
            tracker.abort(PhaseStatus.CANCELLED, exc.message)
            report = self._partial_report(tracker, state, decision)
            return self._terminate(JobState.CANCELLED, error=exc, report=report, quality=state.quality)
        except OutputSinkError as exc:
            logger.error("Job %s failed: %s", self.job_id, exc.message)
            report = self._partial_report(tracker, state, decision)
            return self._terminate(JobState.FAILED, error=exc, report=report, quality=state.quality)
        except asyncio.CancelledError:
            tracker.abort(PhaseStatus.CANCELLED, "Job task was cancelled")
            self._terminate(JobState.CANCELLED, error=JobCancelledError("Job task was cancelled"))
            raise
        except Exception as exc:
            logger.exception("Job %s failed in %s", self.job_id, self.status.value)
            error = PipelineError(f"{self.status.value} step failed: {type(exc).__name__}: {exc}")
            tracker.abort(PhaseStatus.FAILED, error.message)
            report = self._partial_report(tracker, state, decision)
            return self._terminate(JobState.FAILED, error=error, report=report, quality=state.quality)

        self.status = JobState.DONE
        self.channel.finish(
            JobState.DONE.value,
            message=f"Site ready: {quality.aggregate:.1f}/100" if quality else "Site ready",
            locator=locator,
        )
        logger.info("Job %s done: %s", self.job_id, locator)
        return JobResult(
            job_id=self.job_id,
            status=JobState.DONE,
            website=state.website,
            report=report,
            quality=quality,
            locator=locator,
        )

    def _validate(
        self,
        profile: BusinessProfile | Mapping[str, Any],
        tier: Tier | str,
    ) -> tuple[BusinessProfile, Tier]:
        try:
            tier = Tier(tier)
        except ValueError as exc:
            raise InvalidProfileError(f"Unknown tier: {tier!r}") from exc
        if isinstance(profile, BusinessProfile):
            return profile, tier
        try:
            return BusinessProfile.model_validate(dict(profile)), tier
        except ValidationError as exc:
            messages = "; ".join(err["msg"].removeprefix("Value error, ") for err in exc.errors())
            raise InvalidProfileError(messages) from exc
        except TypeError as exc:
            raise InvalidProfileError(f"Business profile must be a mapping: {exc}") from exc

    def _terminate(
        self,
        status: JobState,
        *,
        error: SitesmithError,
        report: PhaseReport | None = None,
        quality: QualityScore | None = None,
    ) -> JobResult:
        if not self.status.terminal:
            self.status = status
        self.channel.finish(status.value, message=error.message, error=error.model_dump())
        return JobResult(
            job_id=self.job_id,
            status=status,
            report=report,
            quality=quality,
            error=JobError(**error.model_dump()),
        )

    def _partial_report(
        self,
        tracker: PhaseTracker,
        state: PipelineState,
        decision: IterationDecision | None,
    ) -> PhaseReport:
        return tracker.finalize(
            quality=state.quality,
            decision=decision,
            iterations=state.iteration,
            dimension_threshold=self.settings.dimension_threshold,
        )

    async def _write(self, state: PipelineState, report: PhaseReport) -> str:
        try:
            return await asyncio.wait_for(
                self.sink.write(state.website, report, job_id=self.job_id),
                timeout=self.settings.sink_timeout,
            )
        except TimeoutError as exc:
            raise OutputSinkError(
                f"Output sink did not finish within {self.settings.sink_timeout:g}s"
            ) from exc

    # ------------------------------------------------------------------
    # Stage sequence
    # ------------------------------------------------------------------

    async def _generate(self, state: PipelineState, tracker: PhaseTracker) -> IterationDecision:
        profile = state.profile
        industry = resolve_industry(profile.industry)
        state.industry_id = industry.id
        state.industry_known = industry.known
        limits = self.settings.limits_for(state.tier)
        templates = select_pages(industry, limits)
        logger.info(
            "Job %s: %s (%s, %s), tier %s, pages %s",
            self.job_id, profile.name, profile.industry,
            "known" if industry.known else "unknown industry", state.tier.value,
            ", ".join(t.id for t in templates),
        )

        self._enter(JobState.PLANNING, "Planning sections and pages")
        await self._run_sections(state, industry, templates, limits, tracker)

        self._enter(JobState.STYLING, "Designing the style system and theme")
        await self._run_style(state, industry, tracker)

        self._enter(JobState.IMAGING, "Planning and generating images")
        await self._run_images(state, industry, limits, tracker)

        self._enter(JobState.COPYWRITING, "Writing section copy")
        await self._run_copy(state, industry, tracker)

        self._enter(JobState.SEO, "Writing page metadata")
        await self._run_seo(state, industry, tracker)

        while True:
            self._enter(JobState.ASSEMBLING, "Assembling pages")
            self._run_assembly(state, industry, tracker)

            self._enter(JobState.ASSESSING, "Assessing quality")
            decision = self._run_assessment(state, tracker)
            if decision.outcome != IterationOutcome.CONTINUE:
                self.channel.publish(JobState.ASSESSING.value, self.channel.percent, decision.reason)
                return decision

            self._enter(JobState.ITERATING, decision.reason)
            state.iteration += 1
            await self._rerun(state, decision, industry, templates, limits, tracker)

    async def _rerun(
        self,
        state: PipelineState,
        decision: IterationDecision,
        industry: IndustryProfile,
        templates: list[PageTemplate],
        limits: TierLimits,
        tracker: PhaseTracker,
    ) -> None:
        suffix = f" (iteration {state.iteration})"
        notes = [
            finding
            for dimension in decision.targets
            if (score := state.quality.score_for(dimension)) is not None
            for finding in score.findings
        ]
        for stage in decision.stages:
            self._checkpoint()
            self.channel.publish(JobState.ITERATING.value, self.channel.percent, f"Re-running {stage.value}")
            if stage == Stage.SECTIONS:
                await self._run_sections(state, industry, templates, limits, tracker, suffix=suffix)
            elif stage == Stage.STYLE:
                await self._run_style(state, industry, tracker, suffix=suffix)
            elif stage == Stage.IMAGES:
                await self._run_images(state, industry, limits, tracker, suffix=suffix)
            elif stage == Stage.COPY:
                await self._run_copy(state, industry, tracker, notes=notes, suffix=suffix)
            elif stage == Stage.SEO:
                await self._run_seo(state, industry, tracker, suffix=suffix)

    # ------------------------------------------------------------------
    # Stage runners
    # ------------------------------------------------------------------

    async def _run_sections(
        self,
        state: PipelineState,
        industry: IndustryProfile,
        templates: list[PageTemplate],
        limits: TierLimits,
        tracker: PhaseTracker,
        *,
        suffix: str = "",
    ) -> None:
        tracker.begin("Planning" + suffix)
        outcome = await self.section_planner.plan(
            state.profile,
            industry,
            capacity=len(templates) * limits.max_sections_per_page,
            timeout=self.settings.completion_timeout,
            on_event=self._events(tracker),
        )
        state.section_plan = outcome.value
        state.page_plan = plan_pages(outcome.value, templates, limits.max_sections_per_page)
        state.fallbacks[Stage.SECTIONS.value] = outcome.used_fallback

        tracker.step(f"Sections: {', '.join(state.section_plan.keys())}")
        tracker.step("Pages: " + ", ".join(
            f"{p.title} ({len(p.section_keys)})" for p in state.page_plan.pages
        ))
        tracker.complete(
            rating=FALLBACK_RATING if outcome.used_fallback else AI_RATING,
            used_fallback=outcome.used_fallback,
            analysis=(
                f"Canonical section order used ({outcome.error})" if outcome.used_fallback
                else f"{len(state.section_plan.sections)} sections planned by the model"
            ),
        )

    async def _run_style(
        self,
        state: PipelineState,
        industry: IndustryProfile,
        tracker: PhaseTracker,
        *,
        suffix: str = "",
    ) -> None:
        tracker.begin("Styling" + suffix)
        on_event = self._events(tracker)
        outcome = await self.style_designer.design(
            state.profile, industry, timeout=self.settings.completion_timeout, on_event=on_event,
        )
        state.style = outcome.value
        theme = await self.theme_engine.derive(
            outcome.value,
            industry=state.profile.industry,
            tone=state.profile.tone,
            radius=industry.radius,
            on_event=on_event,
        )
        state.theme = theme.value
        state.fallbacks[Stage.STYLE.value] = outcome.used_fallback

        tracker.step(f"Palette primary {state.style.palette.primary}, fonts "
                     f"{state.style.fonts.heading} / {state.style.fonts.body}")
        tracker.step(f"Theme mood: {state.theme.mood}")
        if industry.known:
            rating, analysis = LOOKUP_RATING, f"Known industry '{industry.name}': styled from the lookup"
        elif outcome.used_fallback:
            rating, analysis = FALLBACK_RATING, f"Base palette used ({outcome.error})"
        else:
            rating, analysis = AI_RATING, "AI palette merged onto the base lookup"
        if theme.used_fallback:
            rating = min(rating, FALLBACK_RATING)
            analysis += "; theme tokens derived by fixed ratios"
        tracker.complete(rating=rating, used_fallback=outcome.used_fallback, analysis=analysis)

    async def _run_images(
        self,
        state: PipelineState,
        industry: IndustryProfile,
        limits: TierLimits,
        tracker: PhaseTracker,
        *,
        suffix: str = "",
    ) -> None:
        tracker.begin("Imaging" + suffix)
        on_event = self._events(tracker)
        planned = await self.image_planner.plan(
            state.profile,
            industry,
            state.section_plan,
            state.theme,
            include_support=limits.support_images,
            timeout=self.settings.completion_timeout,
            on_event=on_event,
        )
        state.image_plan = planned.value
        generated = await self.image_generator.generate(planned.value, state.theme, on_event=on_event)
        state.images = generated.value
        used_fallback = planned.used_fallback or generated.used_fallback
        state.fallbacks[Stage.IMAGES.value] = used_fallback

        total = len(state.images.images)
        share = state.images.placeholder_count / total if total else 0.0
        tracker.complete(
            rating=image_rating(not planned.used_fallback, share),
            used_fallback=used_fallback,
            analysis=(
                f"{total} image(s), {state.images.placeholder_count} placeholder(s); "
                f"plan from {'rules' if planned.used_fallback else 'the model'}"
            ),
        )

    async def _run_copy(
        self,
        state: PipelineState,
        industry: IndustryProfile,
        tracker: PhaseTracker,
        *,
        notes: list[str] | None = None,
        suffix: str = "",
    ) -> None:
        tracker.begin("Copywriting" + suffix)
        if notes:
            tracker.step(f"Revision notes: {len(notes)}")
        outcome = await self.copywriter.write(
            state.profile,
            industry,
            state.section_plan,
            state.theme,
            state.image_plan,
            revision_notes=notes,
            timeout=self.settings.completion_timeout,
            on_event=self._events(tracker),
        )
        state.copy_bundle = outcome.value
        state.fallbacks[Stage.COPY.value] = outcome.used_fallback

        share = outcome.value.template_share
        tracker.complete(
            rating=round(AI_RATING - (AI_RATING - FALLBACK_RATING) * share),
            used_fallback=outcome.used_fallback,
            analysis=f"{len(outcome.value)} section(s), {share:.0%} from templates",
        )

    async def _run_seo(
        self,
        state: PipelineState,
        industry: IndustryProfile,
        tracker: PhaseTracker,
        *,
        suffix: str = "",
    ) -> None:
        tracker.begin("SEO" + suffix)
        outcome = await self.seo.optimize(
            state.profile,
            industry,
            state.page_plan,
            state.copy_bundle,
            state.images,
            base_url=self.settings.base_url,
            timeout=self.settings.completion_timeout,
            on_event=self._events(tracker),
        )
        state.seo = outcome.value
        state.fallbacks[Stage.SEO.value] = outcome.used_fallback

        for bundle in outcome.value.pages.values():
            tracker.step(f"{bundle.page_id}: {bundle.title}")
        tracker.complete(
            rating=FALLBACK_RATING if outcome.used_fallback else AI_RATING,
            used_fallback=outcome.used_fallback,
            analysis=f"Metadata for {len(outcome.value.pages)} page(s)",
        )

    def _run_assembly(self, state: PipelineState, industry: IndustryProfile, tracker: PhaseTracker) -> None:
        tracker.begin("Assembling" + (f" (iteration {state.iteration})" if state.iteration else ""))
        state.website = self.assembler.assemble(
            profile=state.profile,
            industry=industry,
            tier=state.tier,
            sections=state.section_plan,
            pages=state.page_plan,
            theme=state.theme,
            images=state.images,
            copy=state.copy_bundle,
            seo=state.seo,
            pipeline_version=PIPELINE_VERSION,
            module_versions=self.module_versions(),
            iteration=state.iteration,
        )
        for page in state.website.pages:
            tracker.step(f"{page.filename}: {len(page.section_keys)} section(s)")
        tracker.complete(
            rating=AI_RATING,
            analysis=f"{len(state.website.pages)} page(s) rendered with shared navigation and footer",
        )

    def _run_assessment(self, state: PipelineState, tracker: PhaseTracker) -> IterationDecision:
        tracker.begin("Assessing" + (f" (iteration {state.iteration})" if state.iteration else ""))
        state.quality = self.assessor.assess(state, threshold=self.settings.quality_threshold)
        decision = self.controller.decide(state.quality, state.iteration)
        for dim in state.quality.dimensions:
            tracker.step(f"{dim.dimension.label}: {dim.score:.1f}/10")
        tracker.step(decision.reason)
        tracker.complete(
            rating=round(state.quality.aggregate),
            analysis=f"Aggregate {state.quality.aggregate:.1f}/100, decision: {decision.outcome.value}",
        )
        return decision
