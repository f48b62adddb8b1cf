"""Background generation orchestrator.

Drives one generation request through its stages:

ANALYZING  -- AI analysis of the description (rule-based fallback).
GENERATING -- Base file set from the project synthesizer.
CODING     -- Per-screen Dart code from the model (template fallback).
BUILDING   -- Enriched file mapping assembled.
COMPLETED  -- Files attached to the record.

Each request runs as its own ``asyncio.Task``.  Progress is published by
swapping immutable ``ProjectRecord`` snapshots in the ``ProjectStore``, so a
poller never sees a half-written record.  Generated files are attached only
when the run completes; a failed or cancelled run never exposes files.
"""

from __future__ import annotations

import asyncio
import time
import traceback
from typing import Callable

from rahl.analyzer import AppAnalyzer
from rahl.config import Config
from rahl.errors import GenerationError, InputValidationError, ProjectNotFoundError
from rahl.llm_client import OllamaClient
from rahl.parser.models import AppAnalysis
from rahl.scaffolder.enricher import ProjectEnricher
from rahl.scaffolder.generator import ProjectSynthesizer, derive_package_name, new_project_id
from rahl.store import InMemoryProjectStore, ProjectRecord, ProjectStore, Stage
from rahl.utils import console, format_duration, print_error, print_stage_header, print_success


class GenerationOrchestrator:
    """Runs generation requests in the background and tracks their records.

    Attributes:
        config: Global configuration.
        store: Where project records live.
        analyzer: AI analysis with rule-based fallback.
        synthesizer: Base file-set renderer.
        enricher: Screen files and enriched main/pubspec.
    """

    def __init__(
        self,
        config: Config | None = None,
        store: ProjectStore | None = None,
        analyzer: AppAnalyzer | None = None,
        synthesizer: ProjectSynthesizer | None = None,
        enricher: ProjectEnricher | None = None,
        clock: Callable[[], float] = time.time,
        verbose: bool = False,
    ) -> None:
        self.config = config or Config()
        gen = self.config.generation
        self.store: ProjectStore = store if store is not None else InMemoryProjectStore()
        self.enricher = enricher or ProjectEnricher()
        if analyzer is None:
            client = OllamaClient.from_config(self.config.llm) if gen.use_ai else None
            analyzer = AppAnalyzer(client, namespace=gen.namespace, enricher=self.enricher)
        self.analyzer = analyzer
        self.synthesizer = synthesizer or ProjectSynthesizer(
            namespace=gen.namespace, default_app_name=gen.default_app_name
        )
        self.clock = clock
        self.verbose = verbose
        self._tasks: dict[str, asyncio.Task[ProjectRecord]] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, description: str | None, app_name: str | None = None) -> ProjectRecord:
        """Register a request and launch its background task.

        Must be called from inside a running event loop.  Returns the
        initial ``queued`` snapshot immediately.

        Raises:
            InputValidationError: If *description* is missing or blank.
        """
        if description is None or not description.strip():
            raise InputValidationError("App description is required")

        record = self._create_record(description, (app_name or "").strip())
        task = asyncio.get_running_loop().create_task(self._run(record.project_id))
        self._tasks[record.project_id] = task
        task.add_done_callback(lambda _t, pid=record.project_id: self._tasks.pop(pid, None))
        return record

    def generate_base(self, description: str | None, app_name: str | None = None) -> ProjectRecord:
        """Run the keyword pipeline synchronously and store the completed record.

        No model calls are made: features come from the keyword extractor and
        only the five base files are produced.

        Raises:
            InputValidationError: If *description* is missing or blank.
        """
        if description is None or not description.strip():
            raise InputValidationError("App description is required")

        app_name = (app_name or "").strip() or self.synthesizer.default_app_name
        record = self._create_record(description, app_name)
        project = self.synthesizer.generate_project(
            description, app_name, project_id=record.project_id
        )
        return self._advance(
            record.project_id,
            Stage.COMPLETED,
            f"Project ready: {len(project.files)} files",
            project=project,
        )

    async def generate(self, description: str, app_name: str | None = None) -> ProjectRecord:
        """Start a request and wait for its final snapshot."""
        record = self.start(description, app_name)
        return await self.wait(record.project_id)

    async def wait(self, project_id: str) -> ProjectRecord:
        """Wait for the background task of *project_id* and return the final record."""
        task = self._tasks.get(project_id)
        if task is not None:
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                if not task.cancelled():
                    raise
        return self.get(project_id)

    def get(self, project_id: str) -> ProjectRecord:
        """Return the current snapshot.

        Raises:
            ProjectNotFoundError: If *project_id* is unknown.
        """
        record = self.store.get(project_id)
        if record is None:
            raise ProjectNotFoundError(project_id)
        return record

    def files(self, project_id: str) -> dict[str, str]:
        """Return the generated files of a completed project.

        Raises:
            ProjectNotFoundError: If *project_id* is unknown.
            GenerationError: If the project has not completed.
        """
        record = self.get(project_id)
        if record.status is not Stage.COMPLETED or record.project is None:
            raise GenerationError(record.status.value, "project files are not ready")
        return record.project.files

    def cancel(self, project_id: str) -> ProjectRecord:
        """Cancel a running request; finished requests are returned unchanged."""
        record = self.get(project_id)
        task = self._tasks.get(project_id)
        if task is not None and not task.done():
            task.cancel()
        if record.status.is_terminal:
            return record
        return self._finish(project_id, Stage.CANCELLED, "Generation cancelled")

    # ------------------------------------------------------------------
    # Background task
    # ------------------------------------------------------------------

    async def _run(self, project_id: str) -> ProjectRecord:
        started = time.monotonic()
        record = self.get(project_id)
        try:
            self._advance(project_id, Stage.ANALYZING, "Analyzing app description")
            analysis = await self.analyzer.analyze_description(record.description)
            analysis = self._apply_app_name(analysis, record.app_name)
            self._advance(
                project_id,
                Stage.GENERATING,
                f"Detected screens: {', '.join(analysis.features.screens)}",
                analysis=analysis,
                app_name=analysis.app_name,
            )
            await self._pause()

            project = self.synthesizer.build_project(
                record.description,
                analysis.app_name,
                analysis.features,
                analysis.package_name,
                project_id=project_id,
            )
            self._advance(
                project_id, Stage.CODING, f"Generated {len(project.files)} base files"
            )
            await self._pause()

            sources = await self.analyzer.generate_code_snippets(analysis)
            self._advance(
                project_id, Stage.BUILDING, f"Generated {len(sources)} screen files"
            )
            await self._pause()

            files = self.enricher.enrich(project.files, analysis, sources)
            project = project.model_copy(update={"files": files})
            final = self._advance(
                project_id,
                Stage.COMPLETED,
                f"Project ready: {len(files)} files",
                project=project,
            )
            if self.verbose:
                print_success(
                    f"{project_id} completed in {format_duration(time.monotonic() - started)}"
                )
            return final

        except asyncio.CancelledError:
            self._finish(project_id, Stage.CANCELLED, "Generation cancelled")
            raise

        except Exception as exc:
            if self.verbose:
                print_error(f"{project_id} failed: {exc}")
                console.print(f"[dim]{traceback.format_exc()}[/dim]")
            return self._finish(
                project_id, Stage.FAILED, "Generation failed", error=str(exc)
            )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _create_record(self, description: str, app_name: str) -> ProjectRecord:
        """Allocate a ``rahl_<ms>`` id, suffixing ``_<n>`` on collision."""
        base = new_project_id(self.clock)
        suffix = 0
        while True:
            project_id = base if suffix == 0 else f"{base}_{suffix}"
            if project_id not in self.store:
                record = ProjectRecord(
                    project_id=project_id, description=description, app_name=app_name
                )
                try:
                    return self.store.create(project_id, record)
                except GenerationError:
                    pass
            suffix += 1

    def _apply_app_name(self, analysis: AppAnalysis, app_name: str) -> AppAnalysis:
        """A caller-supplied app name wins over the analysed one."""
        if not app_name:
            return analysis
        return analysis.model_copy(
            update={
                "app_name": app_name,
                "package_name": derive_package_name(
                    app_name, self.config.generation.namespace
                ),
            }
        )

    def _advance(self, project_id: str, stage: Stage, log: str, **changes: object) -> ProjectRecord:
        record = self.store.update(project_id, lambda r: r.advance(stage, log, **changes))
        if self.verbose:
            print_stage_header(stage.value, record.progress)
            console.print(f"  {log}")
        return record

    def _finish(self, project_id: str, stage: Stage, log: str, **changes: object) -> ProjectRecord:
        def _apply(current: ProjectRecord) -> ProjectRecord:
            if current.status.is_terminal:
                return current
            return current.advance(stage, log, **changes)

        return self.store.update(project_id, _apply)

    async def _pause(self) -> None:
        delay = self.config.generation.stage_delay
        if delay > 0:
            await asyncio.sleep(delay)
