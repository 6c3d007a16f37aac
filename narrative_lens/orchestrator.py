"""Run orchestrator: wraps the analysis engine with timing, reports and persistence."""

from __future__ import annotations

import hashlib
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from narrative_lens.agents.manuscript_analyzer import run_manuscript_analysis
from narrative_lens.agents.report_builder import build_json_report, build_markdown_report
from narrative_lens.config import EngineConfig
from narrative_lens.logger import generate_run_id, release_run_log, save_run, setup_logger
from narrative_lens.models import ManuscriptReport

REPORT_VERSION = "1.0.0"


class Orchestrator:
    """Coordinates one analysis run."""

    def __init__(
        self,
        config: EngineConfig,
        run_id: Optional[str] = None,
        progress_cb: Optional[Callable[[str, float], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ):
        self.config = config
        self.run_id = run_id or generate_run_id()
        self.progress_cb = progress_cb
        self.cancel_check = cancel_check
        self.logger = setup_logger(
            "narrative-lens",
            verbosity=config.verbosity,
            run_id=self.run_id if config.save_runs else None,
        )

    def _progress(self, stage: str, pct: float) -> None:
        if self.progress_cb:
            self.progress_cb(stage, pct)

    def _check_cancelled(self) -> None:
        if self.cancel_check and self.cancel_check():
            raise RuntimeError("Cancelled by user.")

    def run(
        self,
        text: str,
        outline: Optional[Iterable[Any]] = None,
        page_mapping: Optional[Iterable[Any]] = None,
        character_names: Optional[Iterable[str]] = None,
        page_count_override: Optional[int] = None,
    ) -> tuple[str, str, ManuscriptReport]:
        """
        Analyze a manuscript and render the reports.

        Returns:
            (markdown_report, json_report, report_object)

        Raises:
            RuntimeError: If the cancel check fires between stages.
        """
        try:
            return self._run(text, outline, page_mapping, character_names, page_count_override)
        finally:
            if self.config.save_runs:
                release_run_log(self.run_id)

    def _run(self, text, outline, page_mapping, character_names, page_count_override):
        t0 = time.monotonic()
        names = list(character_names or [])

        self.logger.info("=== Starting manuscript analysis run %s ===", self.run_id)
        self.logger.info("Input: %d chars, %d character names", len(text), len(names))
        self._progress("starting", 0.0)

        # ── Analysis ──────────────────────────────────────────────────
        self._check_cancelled()
        self._progress("analysis", 0.1)
        results = run_manuscript_analysis(
            text,
            outline=outline,
            page_mapping=page_mapping,
            character_names=names,
            page_count_override=page_count_override,
            config=self.config,
        )

        # ── Build report ──────────────────────────────────────────────
        self._check_cancelled()
        self._progress("building_report", 0.85)

        duration = (time.monotonic() - t0) * 1000
        report = ManuscriptReport(
            version=REPORT_VERSION,
            input_text_hash=hashlib.sha256(text.encode()).hexdigest()[:16],
            input_char_count=len(text),
            character_names=names,
            results=results,
            timestamp=datetime.now(timezone.utc).isoformat(),
            duration_ms=round(duration, 1),
        )

        md_report = build_markdown_report(report)
        json_report = build_json_report(report)

        # ── Persist run ───────────────────────────────────────────────
        if self.config.save_runs:
            try:
                save_run(self.run_id, report.model_dump(mode="json"))
            except OSError as e:
                self.logger.warning("Failed to save run data: %s", e)

        self._progress("done", 1.0)
        self.logger.info("=== Run %s completed in %.1f ms ===", self.run_id, duration)

        return md_report, json_report, report
