"""Output sink: writes a generated site and its reports atomically.

Everything is written into a hidden temporary directory next to the final
location and renamed into place in one step, so a reader never sees a
partially written site.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from sitesmith.errors import OutputSinkError
from sitesmith.output.markdown import render_phase_report
from sitesmith.schemas.pipeline import PhaseReport
from sitesmith.schemas.site import GeneratedWebsite

logger = logging.getLogger(__name__)


class OutputSink(Protocol):
    async def write(self, website: GeneratedWebsite, report: PhaseReport, *, job_id: str) -> str:
        """Persist the artifact triple and return its locator."""
        ...


def site_dirname(business_name: str, job_id: str) -> str:
    slug = "".join(ch if ch.isalnum() else "-" for ch in business_name.lower())
    slug = "-".join(part for part in slug.split("-") if part) or "site"
    return f"{slug}-{job_id[:8]}"


class FileSystemSink:
    """Writes each site to ``root/{business-slug}-{job8}/``.

    Files are staged in a worker thread. The rename that publishes them runs
    on the event loop after staging returns, so a write that is cancelled or
    timed out never publishes; its staging directory is removed instead.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    async def write(self, website: GeneratedWebsite, report: PhaseReport, *, job_id: str) -> str:
        target = self.root / site_dirname(website.metadata.business_name, job_id)
        staging_task = asyncio.ensure_future(asyncio.to_thread(self._stage, website, report, target))
        try:
            staging = await asyncio.shield(staging_task)
        except asyncio.CancelledError:
            staging_task.add_done_callback(_discard_staging)
            raise
        self._publish(staging, target)
        logger.info("Site written to %s (%d page(s))", target, len(website.pages))
        return str(target)

    def _stage(self, website: GeneratedWebsite, report: PhaseReport, target: Path) -> Path:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=f".{target.name}-", dir=self.root))
        except OSError as exc:
            raise OutputSinkError(f"Output directory {self.root} is not writable: {exc}") from exc

        try:
            for page in website.pages:
                (staging / page.filename).write_text(page.html, encoding="utf-8")
            (staging / "styles.css").write_text(website.stylesheet, encoding="utf-8")
            (staging / "app.js").write_text(website.script, encoding="utf-8")

            local = [image for image in website.images if image.is_local]
            for image in local:
                path = staging / image.src
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(image.content)

            metadata = website.metadata.model_dump()
            metadata["pages"] = [
                {"id": p.id, "title": p.title, "filename": p.filename, "sections": p.section_keys}
                for p in website.pages
            ]
            (staging / "metadata.json").write_text(json.dumps(metadata, indent=2), encoding="utf-8")
            (staging / "phase-report.json").write_text(report.model_dump_json(indent=2), encoding="utf-8")
            (staging / "phase-report.md").write_text(render_phase_report(report), encoding="utf-8")
        except (OSError, TypeError) as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise OutputSinkError(f"Could not write site to {target}: {exc}") from exc

        logger.debug("Staged %d page(s) and %d local image(s) in %s", len(website.pages), len(local), staging)
        return staging

    def _publish(self, staging: Path, target: Path) -> None:
        try:
            if target.exists():
                shutil.rmtree(target)
            os.replace(staging, target)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise OutputSinkError(f"Could not publish site to {target}: {exc}") from exc


def _discard_staging(task: asyncio.Future) -> None:
    """Remove what an abandoned write staged once its thread finishes."""
    if task.cancelled() or task.exception() is not None:
        return
    staging = task.result()
    shutil.rmtree(staging, ignore_errors=True)
    logger.info("Discarded staged site %s after the write was abandoned", staging)
