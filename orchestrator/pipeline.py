# ============================================================================
# ITERATION PIPELINE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Drives one job through generate/build/lint/test/validate
# PURPOSE: Run iterations until a round passes or the budget runs out
# CREATED: 18 OCT 2026
# ============================================================================
"""
Iteration Pipeline

One pipeline instance serves every job of a creation service. For a job:

    1. Prepare the workspace (template copy or fallback scaffold)
    2. Repeat up to max_iterations rounds:
         generate -> build -> lint -> test -> validate
       The first failing phase appends one ledger entry and ends the round.
       If budget remains, dist/ is cleared and the next round starts with
       the previous round's failures in the prompt.
    3. A round where every phase succeeds completes the job; running out
       of rounds fails it.

Phase failures are PhaseOutcome values. Anything a phase raises is fatal:
it is recorded against the active phase and the job fails immediately.

Cancellation and the absolute job timeout can finalize the job while a
phase is suspended. The pipeline checks for a terminal job after every
suspension and stops quietly when it finds one.
"""

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from core.config import GenerationDefaults
from core.contracts import GenerationModel, PipelinePhase
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import CreationJob
from services.generation import (
    GenerationError,
    GenerationProvider,
    collect_code_files,
    parse_validation_response,
    write_generated_files,
)
from services.plugin_host import PluginInstaller
from services.prompts import (
    build_initial_prompt,
    build_iteration_prompt,
    build_validation_prompt,
)
from services.workspace import WorkspaceManager
from worker.process import CommandResult, ProcessHarness
from worker.suite_output import SuiteOutputParser, get_parser
from worker.tools import DEFAULT_TOOL

logger = get_logger(__name__, ComponentType.PIPELINE)

BUILD_DIR = "dist"

DEFAULT_PHASE_ERRORS = {
    PipelinePhase.GENERATING: "Generation failed",
    PipelinePhase.BUILDING: "Build failed",
    PipelinePhase.LINTING: "Lint failed",
    PipelinePhase.TESTING: "Tests failed",
    PipelinePhase.VALIDATING: "Validation failed",
}


@dataclass
class PhaseOutcome:
    """Result of one phase."""
    success: bool
    error: Optional[str] = None

    @classmethod
    def ok(cls) -> "PhaseOutcome":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "PhaseOutcome":
        return cls(success=False, error=error)


PhaseFunc = Callable[[CreationJob], Awaitable[PhaseOutcome]]


class IterationPipeline:
    """
    Runs the iteration loop for creation jobs.
    """

    def __init__(
        self,
        harness: ProcessHarness,
        workspace: WorkspaceManager,
        provider: Optional[GenerationProvider] = None,
        parser: Optional[SuiteOutputParser] = None,
        installer: Optional[PluginInstaller] = None,
        generation: Optional[GenerationDefaults] = None,
    ):
        """
        Initialize pipeline.

        Args:
            harness: Process harness for build/lint/test commands
            workspace: Workspace manager for the output directory
            provider: Generation provider; None disables generation
                (and makes validation a no-op success)
            parser: Test output parser (vitest by default)
            installer: Plugin host to hand completed plugins to
            generation: Model, token and temperature settings
        """
        self.harness = harness
        self.workspace = workspace
        self.provider = provider
        self.parser = parser or get_parser()
        self.installer = installer
        self.generation = generation or GenerationDefaults()

    # =========================================================================
    # JOB LOOP
    # =========================================================================

    async def run(self, job: CreationJob, use_template: bool = True) -> None:
        """
        Drive a job to a terminal state.

        Never raises for phase or fatal errors; those end up on the job.
        """
        with log_context(job_id=job.job_id, artifact=job.specification.name, component="pipeline"):
            try:
                if job.is_terminal:
                    return
                await self.workspace.prepare(job, use_template)

                success = False
                while not success and job.current_iteration < job.max_iterations:
                    if job.is_terminal:
                        return
                    iteration = job.begin_iteration()
                    with log_context(iteration=iteration):
                        job.log(f"Starting iteration {iteration}")
                        log_checkpoint("iteration_started", {"max_iterations": job.max_iterations})

                        success = await self.run_iteration(job)
                        if job.is_terminal:
                            return
                        if not success and job.current_iteration < job.max_iterations:
                            await self.prepare_next_iteration(job)

                if job.is_terminal:
                    return
                if success:
                    self._complete(job)
                    await self.hand_off(job)
                else:
                    self._exhausted(job)

            except Exception as e:
                logger.exception(f"Unexpected error in job {job.job_id}: {e}")
                self._fail_fatal(job, e)

    async def run_iteration(self, job: CreationJob) -> bool:
        """
        Run the five phases once.

        Returns:
            True if every phase succeeded
        """
        for phase, handler in self.phases():
            if job.is_terminal:
                return False

            job.current_phase = phase.value
            with log_context(phase=phase.value):
                outcome = await handler(job)
                if job.is_terminal:
                    return False
                if not outcome.success:
                    self._record_phase_failure(job, phase, outcome.error)
                    return False
        return True

    def phases(self) -> Sequence[Tuple[PipelinePhase, PhaseFunc]]:
        handlers = {
            PipelinePhase.GENERATING: self.generate,
            PipelinePhase.BUILDING: self.build,
            PipelinePhase.LINTING: self.lint,
            PipelinePhase.TESTING: self.test,
            PipelinePhase.VALIDATING: self.validate,
        }
        return [(phase, handlers[phase]) for phase in PipelinePhase.ordered()]

    async def prepare_next_iteration(self, job: CreationJob) -> None:
        """Clear build artifacts and log what went wrong in this round."""
        dist = Path(job.output_path) / BUILD_DIR
        if dist.exists():
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, shutil.rmtree, dist)

        logger.info(
            f"Iteration {job.current_iteration} summary for {job.specification.name}:"
        )
        for entry in job.errors_for(job.current_iteration):
            logger.error(f"  - {entry.phase}: {entry.error[:500]}")
        job.current_phase = f"iteration {job.current_iteration}/{job.max_iterations}"

    async def hand_off(self, job: CreationJob) -> None:
        """Give a completed plugin to the plugin host; failures are only logged."""
        if self.installer is None:
            return
        try:
            await self.installer.install_plugin(job.output_path)
            logger.info(f"Plugin {job.specification.name} installed from {job.output_path}")
        except Exception as e:
            logger.error(f"Failed to install newly created plugin {job.specification.name}: {e}")
            job.log(f"Plugin installation failed: {e}")

    # =========================================================================
    # PHASES
    # =========================================================================

    async def generate(self, job: CreationJob) -> PhaseOutcome:
        if self.provider is None:
            return PhaseOutcome.failed("No generation provider configured")

        if job.current_iteration <= 1:
            prompt = build_initial_prompt(job.specification)
        else:
            previous = job.errors_for(job.current_iteration - 1)
            prompt = build_iteration_prompt(job, previous)

        job.log(f"Generating code for {job.specification.name}")
        try:
            text = await self.provider.complete(
                prompt,
                model=self._model_for(job),
                max_tokens=self.generation.generation_max_tokens,
                temperature=self.generation.temperature,
            )
        except GenerationError as e:
            return PhaseOutcome.failed(str(e))

        if job.is_terminal:
            return PhaseOutcome.ok()

        loop = asyncio.get_running_loop()
        written: List[str] = await loop.run_in_executor(
            None, write_generated_files, job.output_path, text
        )
        if not written:
            return PhaseOutcome.failed("Generation response contained no files")
        job.log(f"Wrote {len(written)} generated file(s)")
        return PhaseOutcome.ok()

    async def build(self, job: CreationJob) -> PhaseOutcome:
        install = await self._run_command(job, ["install"], "Installing dependencies")
        if not install.success:
            return PhaseOutcome.failed(install.output or DEFAULT_PHASE_ERRORS[PipelinePhase.BUILDING])
        if job.is_terminal:
            return PhaseOutcome.ok()

        result = await self._run_command(job, ["run", "build"], "Building plugin")
        if not result.success:
            return PhaseOutcome.failed(result.output or DEFAULT_PHASE_ERRORS[PipelinePhase.BUILDING])
        return PhaseOutcome.ok()

    async def lint(self, job: CreationJob) -> PhaseOutcome:
        result = await self._run_command(job, ["run", "lint"], "Linting plugin")
        if not result.success:
            return PhaseOutcome.failed(result.output or DEFAULT_PHASE_ERRORS[PipelinePhase.LINTING])
        return PhaseOutcome.ok()

    async def test(self, job: CreationJob) -> PhaseOutcome:
        result = await self._run_command(job, ["test"], "Running tests")
        if job.is_terminal:
            return PhaseOutcome.ok()

        summary = self.parser.parse(result.output)
        job.test_results = summary
        job.log(
            f"Tests: {summary.passed} passed, {summary.failed} failed, "
            f"{summary.skipped} skipped ({summary.duration:.2f}s)"
        )

        if summary.failed > 0:
            return PhaseOutcome.failed(f"{summary.failed} tests failed")
        if not result.success:
            return PhaseOutcome.failed(result.output or DEFAULT_PHASE_ERRORS[PipelinePhase.TESTING])
        return PhaseOutcome.ok()

    async def validate(self, job: CreationJob) -> PhaseOutcome:
        if self.provider is None:
            logger.warning("Skipping validation: no generation provider configured")
            job.log("Skipping validation - no generation provider configured")
            return PhaseOutcome.ok()

        loop = asyncio.get_running_loop()
        files = await loop.run_in_executor(None, collect_code_files, job.output_path)
        prompt = build_validation_prompt(job.specification, files)

        job.log(f"Validating {len(files)} file(s)")
        try:
            text = await self.provider.complete(
                prompt,
                model=self._model_for(job),
                max_tokens=self.generation.validation_max_tokens,
                temperature=self.generation.temperature,
            )
            verdict = parse_validation_response(text)
        except GenerationError as e:
            return PhaseOutcome.failed(str(e))
        if job.is_terminal:
            return PhaseOutcome.ok()

        job.validation_score = verdict.score
        job.log(f"Validation score: {verdict.score:g}/100")
        if not verdict.production_ready:
            return PhaseOutcome.failed(
                f"Score: {verdict.score:g}/100. Issues: {', '.join(verdict.issues)}"
            )
        return PhaseOutcome.ok()

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _model_for(self, job: CreationJob) -> GenerationModel:
        return job.model_used or self.generation.model

    async def _run_command(
        self,
        job: CreationJob,
        args: List[str],
        description: str,
    ) -> CommandResult:
        return await self.harness.run(
            job.output_path,
            DEFAULT_TOOL,
            args,
            f"{description} for {job.specification.name}",
            on_spawn=job.attach_process,
            on_exit=job.detach_process,
            log=job.log,
        )

    def _record_phase_failure(
        self,
        job: CreationJob,
        phase: PipelinePhase,
        error: Optional[str],
    ) -> None:
        detail = error or DEFAULT_PHASE_ERRORS[phase]
        entry = job.record_error(phase.value, detail)
        job.set_phase_error(detail)
        job.log(f"Phase {phase.value} failed in iteration {job.current_iteration}")
        log_checkpoint("phase_failed", {"error": entry.error[:500]})

    def _complete(self, job: CreationJob) -> None:
        job.mark_completed(
            f"Plugin {job.specification.name} created after "
            f"{job.current_iteration} iteration(s) at {job.output_path}"
        )
        job.log("Job completed successfully")
        log_checkpoint("job_completed", {"iterations": job.current_iteration})

    def _exhausted(self, job: CreationJob) -> None:
        last = job.errors[-1] if job.errors else None
        message = f"Job failed after maximum iterations ({job.max_iterations})"
        if last is not None:
            message += f". Last failure in {last.phase}: {last.error}"
        job.mark_failed(message)
        job.log("Job failed after maximum iterations")
        log_checkpoint("job_failed", {"reason": "iterations_exhausted"})

    def _fail_fatal(self, job: CreationJob, exc: Exception) -> None:
        message = str(exc) or type(exc).__name__
        job.log(f"Unexpected error: {message}")
        if job.is_terminal:
            return
        job.record_error(job.current_phase, message)
        job.mark_failed(message)
        log_checkpoint("job_failed", {"reason": "fatal", "phase": job.current_phase})


__all__ = [
    "PhaseOutcome",
    "IterationPipeline",
]
