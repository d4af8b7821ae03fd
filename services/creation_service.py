# ============================================================================
# PLUGIN CREATION SERVICE
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Core - Job lifecycle management
# PURPOSE: Admit, track, cancel, time out and sweep creation jobs
# CREATED: 18 OCT 2026
# ============================================================================
"""
Plugin Creation Service

Owns all process-wide state for plugin creation:
- The in-memory job map
- The admission governor (created-name registry, rate limiter)
- One background task and one absolute timeout timer per job
- The periodic retention sweep

Nothing is global. Each service instance is isolated, so tests build as
many as they need. All job mutations happen on the event loop thread and
never span an await, so callbacks and pipeline steps cannot interleave
inside one mutation.
"""

import asyncio
import functools
import shutil
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from core.config import Defaults
from core.contracts import GenerationModel
from core.errors import AdmissionError, JobNotFoundError
from core.logging import ComponentType, get_logger, log_checkpoint, log_context
from core.models import CreationJob, PluginSpecification
from orchestrator.governor import AdmissionGovernor
from orchestrator.pipeline import IterationPipeline
from services.generation import AnthropicGenerationProvider, GenerationProvider
from services.plugin_host import PluginInstaller
from services.workspace import WorkspaceManager
from worker.process import ProcessHarness
from worker.suite_output import SuiteOutputParser, get_parser

logger = get_logger(__name__, ComponentType.SERVICE)

ProviderFactory = Callable[[str], GenerationProvider]


class PluginCreationService:
    """Service for plugin creation job lifecycle management."""

    def __init__(
        self,
        defaults: Optional[Defaults] = None,
        provider: Optional[GenerationProvider] = None,
        harness: Optional[ProcessHarness] = None,
        workspace: Optional[WorkspaceManager] = None,
        installer: Optional[PluginInstaller] = None,
        governor: Optional[AdmissionGovernor] = None,
        parser: Optional[SuiteOutputParser] = None,
        provider_factory: Optional[ProviderFactory] = None,
    ):
        """
        Initialize creation service.

        Args:
            defaults: Configuration bundle (Defaults() if omitted)
            provider: Generation provider, or None until an API key arrives
            harness: Process harness (built from defaults if omitted)
            workspace: Workspace manager (built from defaults if omitted)
            installer: Optional plugin host for completed plugins
            governor: Admission governor (built from defaults if omitted)
            parser: Test output parser
            provider_factory: Builds a provider from an API key
        """
        self.defaults = defaults or Defaults()
        settings = self.defaults.orchestrator

        self.governor = governor or AdmissionGovernor(
            data_root=settings.data_root,
            max_tracked_jobs=settings.max_tracked_jobs,
            rate_limit_count=settings.rate_limit_count,
            rate_limit_window_seconds=settings.rate_limit_window_seconds,
        )
        self.harness = harness or ProcessHarness(self.defaults.process)
        self.pipeline = IterationPipeline(
            harness=self.harness,
            workspace=workspace or WorkspaceManager(settings.template_dirs),
            provider=provider,
            parser=parser or get_parser(self.defaults.process.test_runner),
            installer=installer,
            generation=self.defaults.generation,
        )
        self.selected_model: GenerationModel = self.defaults.generation.model
        self._provider_factory = provider_factory or functools.partial(
            AnthropicGenerationProvider.from_defaults, self.defaults.generation
        )

        self._jobs: Dict[str, CreationJob] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._retention_task: Optional[asyncio.Task] = None

    @property
    def provider(self) -> Optional[GenerationProvider]:
        return self.pipeline.provider

    # =========================================================================
    # CREATE
    # =========================================================================

    async def create_plugin(
        self,
        specification: PluginSpecification,
        api_key: Optional[str] = None,
        use_template: bool = True,
        model: Optional[GenerationModel] = None,
    ) -> str:
        """
        Admit a specification and start its creation job.

        Returns immediately; the iteration loop runs as a background task.

        Args:
            specification: Plugin to create
            api_key: Configures the generation provider if none is set yet
            use_template: Copy the plugin-starter template if available
            model: Per-job model override

        Returns:
            The new job's identifier

        Raises:
            AdmissionError subclass if the request is rejected
        """
        job_id = str(uuid.uuid4())
        try:
            output_path = self.governor.admit(specification.name, job_id, self._jobs)
        except AdmissionError as e:
            logger.warning(f"Rejected creation of {specification.name!r}: {e.code}: {e}")
            raise

        if api_key and self.provider is None:
            await self.configure_provider(api_key)

        settings = self.defaults.orchestrator
        job = CreationJob(
            job_id=job_id,
            specification=specification,
            output_path=str(output_path),
            max_iterations=settings.max_iterations,
            model_used=model or self.selected_model,
        )
        self._jobs[job_id] = job
        self.governor.register(specification.name)

        with log_context(job_id=job_id, artifact=specification.name):
            job.log(f"Created job for {specification.name}")
            log_checkpoint("job_created", {
                "output_path": job.output_path,
                "model": job.model_used.value,
                "use_template": use_template,
            })

        loop = asyncio.get_running_loop()
        self._timers[job_id] = loop.call_later(
            settings.job_timeout_seconds, self._on_job_timeout, job_id
        )
        task = asyncio.create_task(
            self.pipeline.run(job, use_template),
            name=f"plugin-job-{job_id}",
        )
        self._tasks[job_id] = task
        task.add_done_callback(functools.partial(self._on_task_done, job_id))
        return job_id

    async def configure_provider(self, api_key: str) -> GenerationProvider:
        """(Re)build the generation provider from an API key."""
        previous = self.pipeline.provider
        self.pipeline.provider = self._provider_factory(api_key)
        if previous is not None:
            await previous.close()
        logger.info("Generation provider configured")
        return self.pipeline.provider

    def set_model(self, model: Union[GenerationModel, str]) -> GenerationModel:
        """Select the model used by jobs created from now on."""
        if not isinstance(model, GenerationModel):
            model = GenerationModel.parse(model)
        self.selected_model = model
        logger.info(f"Generation model set to {model.value}")
        return model

    # =========================================================================
    # QUERY
    # =========================================================================

    def get_job(self, job_id: str) -> Optional[CreationJob]:
        """Snapshot of a job, or None."""
        job = self._jobs.get(job_id)
        return job.snapshot() if job else None

    def get_job_or_raise(self, job_id: str) -> CreationJob:
        job = self.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def list_jobs(self) -> List[CreationJob]:
        """Snapshots of every tracked job, oldest first."""
        return [job.snapshot() for job in self._jobs.values()]

    def get_created_plugins(self) -> List[str]:
        return sorted(self.governor.created_names)

    def is_plugin_created(self, name: str) -> bool:
        return self.governor.is_created(name)

    @property
    def stats(self) -> Dict[str, Any]:
        by_status = Counter(job.status.value for job in self._jobs.values())
        return {
            "tracked_jobs": len(self._jobs),
            "max_tracked_jobs": self.governor.max_tracked_jobs,
            "jobs_by_status": dict(by_status),
            "active_tasks": len(self._tasks),
            "created_plugins": len(self.governor.created_names),
            "rate_limit_used": self.governor.rate_limiter.count,
            "provider_configured": self.provider is not None,
            "model": self.selected_model.value,
        }

    # =========================================================================
    # CANCEL / TIMEOUT
    # =========================================================================

    def cancel_job(self, job_id: str) -> bool:
        """
        Cancel a pending or running job.

        Returns:
            True if the job was cancelled, False if it was already terminal

        Raises:
            JobNotFoundError if the job is unknown
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        if job.is_terminal:
            return False

        job.mark_cancelled()
        job.log("Job cancelled by user")
        job.terminate_process()
        self._cancel_timer(job_id)

        with log_context(job_id=job_id, artifact=job.specification.name):
            log_checkpoint("job_cancelled", {"iteration": job.current_iteration})
        return True

    def _on_job_timeout(self, job_id: str) -> None:
        self._timers.pop(job_id, None)
        job = self._jobs.get(job_id)
        if job is None or job.is_terminal:
            return

        minutes = self.defaults.orchestrator.job_timeout_seconds / 60
        job.mark_failed(f"Job timed out after {minutes:g} minutes")
        job.log(f"Job timed out after {minutes:g} minutes")
        with log_context(job_id=job_id, artifact=job.specification.name):
            log_checkpoint("job_failed", {"reason": "timeout"})

    def _cancel_timer(self, job_id: str) -> None:
        timer = self._timers.pop(job_id, None)
        if timer is not None:
            timer.cancel()

    def _on_task_done(self, job_id: str, task: asyncio.Task) -> None:
        self._tasks.pop(job_id, None)
        self._cancel_timer(job_id)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Background task for job {job_id} crashed: {error!r}")

    # =========================================================================
    # RETENTION
    # =========================================================================

    async def cleanup_old_jobs(self, now: Optional[datetime] = None) -> int:
        """
        Remove jobs finished longer ago than the retention window.

        Output directories are deleted best-effort; failures are logged.
        Created names stay registered.

        Returns:
            Number of jobs removed
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=self.defaults.orchestrator.retention_days)
        expired = [
            job for job in self._jobs.values()
            if job.completed_at is not None and job.completed_at < cutoff
        ]

        loop = asyncio.get_running_loop()
        for job in expired:
            job_dir = Path(job.output_path).parent
            if job_dir.is_relative_to(self.governor.data_root) and job_dir.exists():
                try:
                    await loop.run_in_executor(None, shutil.rmtree, job_dir)
                except OSError as e:
                    logger.error(f"Failed to delete output of job {job.job_id}: {e}")
            self._jobs.pop(job.job_id, None)

        if expired:
            log_checkpoint("jobs_swept", {"removed": len(expired), "remaining": len(self._jobs)})
        return len(expired)

    async def _retention_loop(self) -> None:
        interval = self.defaults.orchestrator.cleanup_interval_seconds
        while True:
            await asyncio.sleep(interval)
            try:
                await self.cleanup_old_jobs()
            except Exception as e:
                logger.error(f"Retention sweep failed: {e}")

    # =========================================================================
    # START / STOP
    # =========================================================================

    def start(self) -> None:
        """Start the periodic retention sweep."""
        if self._retention_task is None:
            self._retention_task = asyncio.create_task(
                self._retention_loop(), name="plugin-job-retention"
            )
            logger.info("Plugin creation service started")

    async def stop(self) -> None:
        """Cancel outstanding jobs, stop background work, release the provider."""
        for job in self._jobs.values():
            if job.is_terminal:
                continue
            job.mark_cancelled()
            job.log("Service stopped, job cancelled")
            job.terminate_process()

        for job_id in list(self._timers):
            self._cancel_timer(job_id)

        tasks = list(self._tasks.values())
        if self._retention_task is not None:
            tasks.append(self._retention_task)
            self._retention_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if self.provider is not None:
            await self.provider.close()
        logger.info("Plugin creation service stopped")


__all__ = ["PluginCreationService"]
