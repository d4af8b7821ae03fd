# ============================================================================
# PLUGIN CREATION SERVICE TESTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tests - Job lifecycle end to end
# PURPOSE: Verify admission, background execution, cancel, timeout, sweep
# CREATED: 18 OCT 2026
# ============================================================================
"""
Plugin Creation Service Tests

Each test builds an isolated service over tmp_path with an in-memory
harness and provider, then drives it inside asyncio.run().

Covers:
1. End-to-end: scope/pkg completes after exactly one iteration
2. Duplicate names rejected while the first job is unaffected
3. Unique job identifiers
4. Rate-limit and capacity boundaries (capacity freed by the sweep)
5. Cancellation, including idempotence on terminal jobs
6. Absolute job timeout
7. Shutdown cancels outstanding jobs
8. Model selection and provider configuration from an API key

Run with:
    pytest tests/test_creation_service.py -v
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List
from unittest.mock import MagicMock

import pytest

from core.config import Defaults, OrchestratorDefaults, ProcessDefaults
from core.contracts import GenerationModel, JobStatus
from core.errors import (
    CapacityExceededError,
    DuplicateArtifactError,
    InvalidNameError,
    JobNotFoundError,
    RateLimitedError,
)
from core.models import PluginSpecification
from orchestrator.governor import AdmissionGovernor
from services.creation_service import PluginCreationService
from services.generation import GenerationProvider
from services.workspace import WorkspaceManager
from worker.process import CommandResult
from worker.suite_output import PytestOutputParser, VitestOutputParser


GENERATED = "```ts\n// File: src/index.ts\nexport const plugin = {};\n```\n"
PASSING_TESTS = "      Tests  3 passed (3)\n   Duration  0.20s\n"
READY = json.dumps({"score": 95, "production_ready": True, "issues": [], "suggestions": []})


# ============================================================================
# FAKES & HELPERS
# ============================================================================

class FakeHarness:
    """Every command succeeds; `test` prints a passing vitest summary."""

    def __init__(self):
        self.calls: List[str] = []

    async def run(self, cwd, command, args, description, *, on_spawn=None, on_exit=None,
                  log=None, timeout_seconds=None):
        key = " ".join(args)
        self.calls.append(key)
        return CommandResult(success=True, output=PASSING_TESTS if key == "test" else "", exit_code=0)


class BlockingHarness(FakeHarness):
    """Holds every command until `release` is set; exposes a fake process."""

    def __init__(self):
        super().__init__()
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.process = MagicMock(returncode=None)

    async def run(self, cwd, command, args, description, *, on_spawn=None, on_exit=None,
                  log=None, timeout_seconds=None):
        if on_spawn:
            on_spawn(self.process)
        self.started.set()
        try:
            await self.release.wait()
        finally:
            if on_exit:
                on_exit(self.process)
        return await super().run(cwd, command, args, description)


class FakeProvider(GenerationProvider):

    def __init__(self):
        self.models: List[GenerationModel] = []

    async def complete(self, prompt, *, model, max_tokens, temperature=0.0):
        self.models.append(model)
        return READY if prompt.startswith("Review this") else GENERATED


def _spec(name: str = "scope/pkg") -> PluginSpecification:
    return PluginSpecification(name=name, description=f"Package {name}")


def _make_service(tmp_path, harness=None, provider="default", governor=None, **orchestrator):
    defaults = Defaults(orchestrator=OrchestratorDefaults(data_dir=str(tmp_path), **orchestrator))
    return PluginCreationService(
        defaults,
        provider=FakeProvider() if provider == "default" else provider,
        harness=harness or FakeHarness(),
        workspace=WorkspaceManager([]),
        governor=governor,
    )


async def _wait_terminal(service, job_id, timeout: float = 5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        job = service.get_job(job_id)
        if job.is_terminal:
            return job
        await asyncio.sleep(0.01)
    raise AssertionError(f"Job {job_id} did not finish within {timeout}s")


async def _wait_idle(service, timeout: float = 5.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while service.stats["active_tasks"] and loop.time() < deadline:
        await asyncio.sleep(0.01)


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


# ============================================================================
# END TO END
# ============================================================================

class TestEndToEnd:

    def test_scope_pkg_completes_in_one_iteration(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            job_id = await service.create_plugin(_spec("scope/pkg"), use_template=False)
            job = await _wait_terminal(service, job_id)
            await service.stop()
            return job

        job = asyncio.run(run_test())
        assert job.status == JobStatus.COMPLETED
        assert job.current_iteration == 1
        assert job.test_results.failed == 0
        assert job.validation_score == 95
        assert Path(job.output_path).is_relative_to(tmp_path.resolve())
        assert Path(job.output_path).name == "scope-pkg"

    def test_create_returns_before_pipeline_runs(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            job_id = await service.create_plugin(_spec())
            pending = service.get_job(job_id)
            await service.stop()
            return pending

        job = asyncio.run(run_test())
        assert job.status == JobStatus.PENDING
        assert job.current_iteration == 0

    def test_duplicate_rejected_first_job_unaffected(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            first = await service.create_plugin(_spec("scope/pkg"), use_template=False)
            with pytest.raises(DuplicateArtifactError):
                await service.create_plugin(_spec("scope/pkg"))
            job = await _wait_terminal(service, first)
            jobs = service.list_jobs()
            await service.stop()
            return job, jobs

        job, jobs = asyncio.run(run_test())
        assert job.status == JobStatus.COMPLETED
        assert len(jobs) == 1

    def test_job_ids_unique(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path, max_tracked_jobs=20, rate_limit_count=20)
            ids = [await service.create_plugin(_spec(f"scope/pkg-{i}")) for i in range(20)]
            await service.stop()
            return ids

        ids = asyncio.run(run_test())
        assert len(set(ids)) == 20

    def test_invalid_name_creates_nothing(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            with pytest.raises(InvalidNameError):
                await service.create_plugin(_spec("scope/../../etc"))
            jobs = service.list_jobs()
            await service.stop()
            return jobs

        assert asyncio.run(run_test()) == []
        assert not (tmp_path / "plugins").exists()

    def test_created_registry(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            await service.create_plugin(_spec("scope/b"))
            await service.create_plugin(_spec("scope/a"))
            result = (service.get_created_plugins(), service.is_plugin_created("scope/a"),
                      service.is_plugin_created("scope/z"))
            await service.stop()
            return result

        names, has_a, has_z = asyncio.run(run_test())
        assert names == ["scope/a", "scope/b"]
        assert has_a is True
        assert has_z is False


# ============================================================================
# LIMITS
# ============================================================================

class TestLimits:

    def test_rate_limit_boundary(self, tmp_path):
        clock = FakeClock()
        governor = AdmissionGovernor(tmp_path, max_tracked_jobs=50, rate_limit_count=10, clock=clock)

        async def run_test():
            service = _make_service(tmp_path, governor=governor)
            for i in range(10):
                await service.create_plugin(_spec(f"scope/pkg-{i}"))
            with pytest.raises(RateLimitedError):
                await service.create_plugin(_spec("scope/pkg-10"))
            clock.now += 3601
            job_id = await service.create_plugin(_spec("scope/pkg-10"))
            await service.stop()
            return job_id

        assert asyncio.run(run_test())

    def test_capacity_boundary_freed_by_sweep(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path, rate_limit_count=100)
            ids = []
            for i in range(10):
                ids.append(await service.create_plugin(_spec(f"scope/pkg-{i}"), use_template=False))
            with pytest.raises(CapacityExceededError):
                await service.create_plugin(_spec("scope/pkg-10"))

            for job_id in ids:
                await _wait_terminal(service, job_id)
            output_dirs = [Path(service.get_job(j).output_path).parent for j in ids]

            not_yet = await service.cleanup_old_jobs()
            later = datetime.now(timezone.utc) + timedelta(days=8)
            removed = await service.cleanup_old_jobs(now=later)

            new_id = await service.create_plugin(_spec("scope/pkg-10"))
            await service.stop()
            return not_yet, removed, output_dirs, new_id

        not_yet, removed, output_dirs, new_id = asyncio.run(run_test())
        assert not_yet == 0
        assert removed == 10
        assert all(not d.exists() for d in output_dirs)
        assert new_id


# ============================================================================
# CANCEL / TIMEOUT / STOP
# ============================================================================

class TestCancellation:

    def test_cancel_running_job(self, tmp_path):
        async def run_test():
            harness = BlockingHarness()
            service = _make_service(tmp_path, harness=harness)
            job_id = await service.create_plugin(_spec(), use_template=False)
            await asyncio.wait_for(harness.started.wait(), 5)

            assert service.cancel_job(job_id) is True
            cancelled = service.get_job(job_id)

            assert service.cancel_job(job_id) is False
            again = service.get_job(job_id)

            harness.release.set()
            await _wait_idle(service)
            final = service.get_job(job_id)
            await service.stop()
            return harness, cancelled, again, final

        harness, cancelled, again, final = asyncio.run(run_test())
        harness.process.terminate.assert_called_once()
        assert cancelled.status == JobStatus.CANCELLED
        assert cancelled.completed_at is not None
        assert any("Job cancelled by user" in line for line in cancelled.logs)
        assert again.completed_at == cancelled.completed_at
        assert final.status == JobStatus.CANCELLED
        assert final.completed_at == cancelled.completed_at
        assert final.errors == []

    def test_cancel_completed_job_is_noop(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            job_id = await service.create_plugin(_spec(), use_template=False)
            done = await _wait_terminal(service, job_id)
            result = service.cancel_job(job_id)
            after = service.get_job(job_id)
            await service.stop()
            return done, result, after

        done, result, after = asyncio.run(run_test())
        assert result is False
        assert after.status == JobStatus.COMPLETED
        assert after.completed_at == done.completed_at

    def test_cancel_unknown_job(self, tmp_path):
        service = _make_service(tmp_path)
        with pytest.raises(JobNotFoundError):
            service.cancel_job("no-such-job")

    def test_absolute_timeout_fails_job(self, tmp_path):
        async def run_test():
            harness = BlockingHarness()
            service = _make_service(tmp_path, harness=harness, job_timeout_seconds=0.05)
            job_id = await service.create_plugin(_spec(), use_template=False)
            timed_out = await _wait_terminal(service, job_id)
            harness.release.set()
            await _wait_idle(service)
            final = service.get_job(job_id)
            await service.stop()
            return timed_out, final

        timed_out, final = asyncio.run(run_test())
        assert timed_out.status == JobStatus.FAILED
        assert "timed out" in timed_out.error
        assert final.status == JobStatus.FAILED
        assert final.completed_at == timed_out.completed_at

    def test_stop_cancels_outstanding_jobs(self, tmp_path):
        async def run_test():
            harness = BlockingHarness()
            service = _make_service(tmp_path, harness=harness)
            service.start()
            job_id = await service.create_plugin(_spec(), use_template=False)
            await asyncio.wait_for(harness.started.wait(), 5)
            await service.stop()
            return service, service.get_job(job_id)

        service, job = asyncio.run(run_test())
        assert job.status == JobStatus.CANCELLED
        assert any("Service stopped, job cancelled" in line for line in job.logs)
        assert service.stats["active_tasks"] == 0


# ============================================================================
# MODEL & PROVIDER
# ============================================================================

class TestModelAndProvider:

    def test_service_model_and_per_job_override(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path)
            service.set_model("claude-3-5-sonnet-20241022")
            default_job = await service.create_plugin(_spec("scope/a"))
            override_job = await service.create_plugin(_spec("scope/b"), model=GenerationModel.OPUS_3)
            result = service.get_job(default_job), service.get_job(override_job)
            await service.stop()
            return result

        default_job, override_job = asyncio.run(run_test())
        assert default_job.model_used == GenerationModel.SONNET_3_5
        assert override_job.model_used == GenerationModel.OPUS_3

    def test_unknown_model_rejected(self, tmp_path):
        service = _make_service(tmp_path)
        with pytest.raises(ValueError):
            service.set_model("gpt-4")

    def test_api_key_configures_provider(self, tmp_path):
        provider = FakeProvider()
        factory = MagicMock(return_value=provider)

        async def run_test():
            defaults = Defaults(orchestrator=OrchestratorDefaults(data_dir=str(tmp_path)))
            service = PluginCreationService(
                defaults,
                harness=FakeHarness(),
                workspace=WorkspaceManager([]),
                provider_factory=factory,
            )
            job_id = await service.create_plugin(_spec(), api_key="sk-test", use_template=False)
            job = await _wait_terminal(service, job_id)
            await service.stop()
            return job

        job = asyncio.run(run_test())
        factory.assert_called_once_with("sk-test")
        assert job.status == JobStatus.COMPLETED
        assert provider.models

    def test_no_provider_fails_after_budget(self, tmp_path):
        async def run_test():
            service = _make_service(tmp_path, provider=None, max_iterations=2)
            job_id = await service.create_plugin(_spec(), use_template=False)
            job = await _wait_terminal(service, job_id)
            await service.stop()
            return job

        job = asyncio.run(run_test())
        assert job.status == JobStatus.FAILED
        assert job.current_iteration == 2
        assert [e.phase for e in job.errors] == ["generating", "generating"]


# ============================================================================
# TEST RUNNER SELECTION
# ============================================================================

class TestRunnerSelection:

    def test_default_runner_is_vitest(self, tmp_path):
        service = _make_service(tmp_path)
        assert isinstance(service.pipeline.parser, VitestOutputParser)

    def test_configured_runner_selects_parser(self, tmp_path):
        defaults = Defaults(
            orchestrator=OrchestratorDefaults(data_dir=str(tmp_path)),
            process=ProcessDefaults(test_runner="pytest"),
        )
        service = PluginCreationService(defaults, harness=FakeHarness(), workspace=WorkspaceManager([]))
        assert isinstance(service.pipeline.parser, PytestOutputParser)

    def test_unknown_runner_rejected(self, tmp_path):
        defaults = Defaults(process=ProcessDefaults(test_runner="mocha"))
        with pytest.raises(KeyError):
            PluginCreationService(defaults, harness=FakeHarness(), workspace=WorkspaceManager([]))
