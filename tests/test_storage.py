"""Tests for the file-system output sink."""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path

import pytest

from sitesmith.errors import OutputSinkError
from sitesmith.schemas.images import GeneratedImage, ImagePurpose
from sitesmith.schemas.pipeline import PhaseRecord, PhaseReport
from sitesmith.schemas.site import GeneratedPage, GeneratedWebsite, SiteMetadata
from sitesmith.shared.storage import FileSystemSink, site_dirname


def _website(name: str = "Harbor Table") -> GeneratedWebsite:
    return GeneratedWebsite(
        pages=[
            GeneratedPage(id="home", title="Home", slug="index", filename="index.html",
                          section_keys=["hero-1"], html="<h1>Home</h1>"),
            GeneratedPage(id="contact", title="Visit Us", slug="visit-us", filename="visit-us.html",
                          section_keys=["contact-1"], html="<h1>Visit Us</h1>"),
        ],
        stylesheet=":root { --color-primary: #8B4513; }",
        script="console.log('ok');",
        images=[
            GeneratedImage(section_key="hero-1", purpose=ImagePurpose.HERO, src="images/hero-1-hero.png",
                           content=b"\x89PNG\r\n"),
            GeneratedImage(section_key="about-1", purpose=ImagePurpose.SUPPORTING,
                           src="data:image/svg+xml;base64,AAAA", placeholder=True),
        ],
        metadata=SiteMetadata(
            pipeline_version="0.4.0",
            module_versions={"copywriter": "1.4"},
            business_name=name,
            industry="Restaurant",
            tier="professional",
            page_count=2,
            section_count=2,
            image_count=2,
            placeholder_count=1,
        ),
    )


def _report() -> PhaseReport:
    return PhaseReport(
        job_id="abcdef1234567890",
        business_name="Harbor Table",
        phases=[PhaseRecord(number=1, name="Planning", rating=100, steps=["Sections: hero-1"])],
    )


class TestSiteDirname:
    def test_slug_and_job_prefix(self) -> None:
        assert site_dirname("Harbor Table & Bar", "abcdef1234567890") == "harbor-table-bar-abcdef12"

    def test_empty_name(self) -> None:
        assert site_dirname("!!!", "12345678") == "site-12345678"


class TestFileSystemSink:
    @pytest.mark.asyncio
    async def test_writes_artifact_triple(self, tmp_path: Path) -> None:
        sink = FileSystemSink(tmp_path / "out")
        locator = await sink.write(_website(), _report(), job_id="abcdef1234567890")

        site = Path(locator)
        assert site == tmp_path / "out" / "harbor-table-abcdef12"
        assert (site / "index.html").read_text() == "<h1>Home</h1>"
        assert (site / "visit-us.html").exists()
        assert (site / "styles.css").read_text().startswith(":root")
        assert (site / "app.js").exists()
        assert (site / "images" / "hero-1-hero.png").read_bytes() == b"\x89PNG\r\n"

        metadata = json.loads((site / "metadata.json").read_text())
        assert metadata["pipeline_version"] == "0.4.0"
        assert [p["filename"] for p in metadata["pages"]] == ["index.html", "visit-us.html"]

        report = PhaseReport.model_validate_json((site / "phase-report.json").read_text())
        assert report.phases[0].name == "Planning"
        assert "# Generation Report: Harbor Table" in (site / "phase-report.md").read_text()

    @pytest.mark.asyncio
    async def test_no_staging_directory_left_behind(self, tmp_path: Path) -> None:
        sink = FileSystemSink(tmp_path)
        await sink.write(_website(), _report(), job_id="abcdef1234567890")
        assert [p.name for p in tmp_path.iterdir()] == ["harbor-table-abcdef12"]

    @pytest.mark.asyncio
    async def test_rewrite_replaces_previous_output(self, tmp_path: Path) -> None:
        sink = FileSystemSink(tmp_path)
        locator = await sink.write(_website(), _report(), job_id="abcdef1234567890")
        (Path(locator) / "stale.html").write_text("old")

        await sink.write(_website(), _report(), job_id="abcdef1234567890")
        assert not (Path(locator) / "stale.html").exists()

    @pytest.mark.asyncio
    async def test_unwritable_root_raises(self, tmp_path: Path) -> None:
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        sink = FileSystemSink(blocker / "out")

        with pytest.raises(OutputSinkError, match="not writable") as exc_info:
            await sink.write(_website(), _report(), job_id="abcdef1234567890")
        assert exc_info.value.model_dump()["code"] == "OUTPUT_SINK"

    @pytest.mark.asyncio
    async def test_failed_write_cleans_up_staging(self, tmp_path: Path, monkeypatch) -> None:
        def explode(report: PhaseReport) -> str:
            raise OSError("disk full")

        monkeypatch.setattr("sitesmith.shared.storage.render_phase_report", explode)
        sink = FileSystemSink(tmp_path)

        with pytest.raises(OutputSinkError, match="disk full"):
            await sink.write(_website(), _report(), job_id="abcdef1234567890")
        assert list(tmp_path.iterdir()) == []


class SlowStagingSink(FileSystemSink):
    def _stage(self, website, report, target):
        time.sleep(0.3)
        return super()._stage(website, report, target)


class TestAbandonedWrite:
    @pytest.mark.asyncio
    async def test_timed_out_write_never_publishes(self, tmp_path: Path) -> None:
        sink = SlowStagingSink(tmp_path)

        with pytest.raises(TimeoutError):
            await asyncio.wait_for(sink.write(_website(), _report(), job_id="abcdef1234567890"), timeout=0.05)

        # Let the worker thread finish staging
        await asyncio.sleep(1.0)
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_cancelled_write_never_publishes(self, tmp_path: Path) -> None:
        task = asyncio.create_task(SlowStagingSink(tmp_path).write(_website(), _report(), job_id="abcdef1234567890"))
        await asyncio.sleep(0.05)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(1.0)
        assert not (tmp_path / "harbor-table-abcdef12").exists()
        assert list(tmp_path.iterdir()) == []
