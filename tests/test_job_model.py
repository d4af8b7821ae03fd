# ============================================================================
# CREATION JOB MODEL TESTS
# ============================================================================
# EPOCH: 1 - ITERATIVE PLUGIN CREATION
# STATUS: Tests - Job state machine and ledger
# PURPOSE: Verify transitions, iteration budget, logs and process handle
# CREATED: 18 OCT 2026
# ============================================================================
"""
Creation Job Model Tests

Covers:
1. Status transitions and terminal finality
2. completed_at is set iff the job is terminal
3. Iteration budget and progress
4. Append-only logs and error ledger, with tail truncation
5. Child process handle (attach / detach / terminate)
6. Snapshots

Run with:
    pytest tests/test_job_model.py -v
"""

import pytest
from unittest.mock import MagicMock

from core.contracts import JobStatus, PipelinePhase
from core.models import CreationJob, PluginSpecification
from core.models.job import MAX_ERROR_CHARS


# ============================================================================
# HELPERS
# ============================================================================

def _make_job(max_iterations: int = 5) -> CreationJob:
    return CreationJob(
        job_id="job-001",
        specification=PluginSpecification(name="@acme/plugin-test", description="Test plugin"),
        output_path="/tmp/data/plugins/job-001/acme-plugin-test",
        max_iterations=max_iterations,
    )


# ============================================================================
# TRANSITIONS
# ============================================================================

class TestTransitions:

    def test_new_job_is_pending(self):
        job = _make_job()
        assert job.status == JobStatus.PENDING
        assert job.current_iteration == 0
        assert job.completed_at is None
        assert job.is_terminal is False

    def test_pending_to_running_on_first_iteration(self):
        job = _make_job()
        assert job.begin_iteration() == 1
        assert job.status == JobStatus.RUNNING

    def test_running_to_running_allowed(self):
        job = _make_job()
        job.begin_iteration()
        assert job.can_transition_to(JobStatus.RUNNING)
        assert job.begin_iteration() == 2

    def test_pending_cannot_complete(self):
        job = _make_job()
        with pytest.raises(ValueError):
            job.mark_completed()

    @pytest.mark.parametrize("finish", ["completed", "failed", "cancelled"])
    def test_terminal_states_are_final(self, finish):
        job = _make_job()
        job.begin_iteration()
        if finish == "completed":
            job.mark_completed("done")
        elif finish == "failed":
            job.mark_failed("boom")
        else:
            job.mark_cancelled()

        for status in JobStatus:
            assert not job.can_transition_to(status)
        with pytest.raises(ValueError):
            job.mark_cancelled()
        with pytest.raises(ValueError):
            job.begin_iteration()

    def test_pending_can_fail_or_cancel(self):
        assert _make_job().can_transition_to(JobStatus.FAILED)
        assert _make_job().can_transition_to(JobStatus.CANCELLED)

    def test_completed_at_set_iff_terminal(self):
        job = _make_job()
        assert job.completed_at is None
        job.begin_iteration()
        assert job.completed_at is None
        job.mark_failed("out of budget")
        assert job.completed_at is not None
        assert job.is_terminal

    def test_mark_completed_clears_error_and_keeps_result(self):
        job = _make_job()
        job.begin_iteration()
        job.set_phase_error("lint noise")
        job.mark_completed("Plugin created")
        assert job.error is None
        assert job.result == "Plugin created"

    def test_duration_frozen_once_terminal(self):
        job = _make_job()
        job.begin_iteration()
        job.mark_cancelled()
        first = job.duration_seconds
        assert job.duration_seconds == first


# ============================================================================
# ITERATIONS
# ============================================================================

class TestIterations:

    def test_progress_and_phase_label(self):
        job = _make_job(max_iterations=4)
        job.begin_iteration()
        assert job.progress == 25.0
        assert job.current_phase == "iteration 1/4"

    def test_budget_never_exceeded(self):
        job = _make_job(max_iterations=2)
        job.begin_iteration()
        job.begin_iteration()
        with pytest.raises(ValueError, match="budget"):
            job.begin_iteration()
        assert job.current_iteration == 2
        assert job.progress == 100.0


# ============================================================================
# LOGS & LEDGER
# ============================================================================

class TestLogsAndLedger:

    def test_log_lines_are_timestamped(self):
        job = _make_job()
        job.log("hello")
        assert len(job.logs) == 1
        assert job.logs[0].startswith("[")
        assert job.logs[0].endswith("] hello")

    def test_ledger_entries_carry_iteration(self):
        job = _make_job()
        job.begin_iteration()
        job.record_error(PipelinePhase.BUILDING.value, "tsc failed")
        job.begin_iteration()
        job.record_error(PipelinePhase.TESTING.value, "2 tests failed")

        assert [e.iteration for e in job.errors] == [1, 2]
        assert [e.phase for e in job.errors_for(2)] == ["testing"]

    def test_long_errors_keep_the_tail(self):
        job = _make_job()
        job.begin_iteration()
        entry = job.record_error("building", "x" * (MAX_ERROR_CHARS + 50) + "END")
        assert entry.error.endswith("END")
        assert len(entry.error) < MAX_ERROR_CHARS + 50

        job.mark_failed("y" * (MAX_ERROR_CHARS * 2))
        assert len(job.error) <= MAX_ERROR_CHARS + len("[...truncated]\n")


# ============================================================================
# PROCESS HANDLE
# ============================================================================

class TestProcessHandle:

    def test_terminate_live_process(self):
        job = _make_job()
        process = MagicMock(returncode=None)
        job.attach_process(process)
        assert job.terminate_process() is True
        process.terminate.assert_called_once()

    def test_terminate_exited_process_is_noop(self):
        job = _make_job()
        process = MagicMock(returncode=0)
        job.attach_process(process)
        assert job.terminate_process() is False
        process.terminate.assert_not_called()

    def test_terminate_vanished_process(self):
        job = _make_job()
        process = MagicMock(returncode=None)
        process.terminate.side_effect = ProcessLookupError()
        job.attach_process(process)
        assert job.terminate_process() is False

    def test_detach_only_matching_process(self):
        job = _make_job()
        current = MagicMock(returncode=None)
        job.attach_process(current)
        job.detach_process(MagicMock())
        assert job.process is current
        job.detach_process(current)
        assert job.process is None

    def test_snapshot_is_detached(self):
        job = _make_job()
        job.attach_process(MagicMock(returncode=None))
        job.log("one")

        snap = job.snapshot()
        job.log("two")

        assert snap.process is None
        assert len(snap.logs) == 1
        assert snap.job_id == job.job_id
        assert snap.specification.name == "@acme/plugin-test"
