from __future__ import annotations

import itertools

import pytest

from packages.core.supervisor.types import LaunchRequest


def _request(target: str) -> LaunchRequest:
    return LaunchRequest(target_id=target, command=[f"app{target}"], process_match_name="appx")


def test_normal_end_after_start_run_and_two_misses(harness_factory, request_x):
    h = harness_factory([False, False, False, True, True, True, True, True, False, False])
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(3)
    assert session.phase == "AWAITING_START"
    assert h.conclusions == []

    h.scheduler.ticks(1)
    assert session.phase == "RUNNING"
    assert ("hide_primary",) in h.surface.calls

    h.scheduler.ticks(4)
    assert session.phase == "RUNNING"

    h.scheduler.ticks(1)
    assert session.phase == "ENDING"
    assert h.conclusions == []

    h.scheduler.ticks(1)
    assert h.conclusions == [(session.session_id, "ENDED")]
    assert session.concluded and session.status == "ENDED"
    assert h.surface.count("show_primary") == 1
    assert h.surface.count("notify") == 0
    assert [c for c in h.surface.calls if c[0] == "loading"][-1] == ("loading", "x", False)
    assert h.event_types() == ["APP_LAUNCHED", "APP_STARTED", "APP_ENDED"]
    assert h.supervisor.active_session is None
    assert h.scheduler.pending() == []

    queries = h.table.queries
    h.scheduler.ticks(5)
    assert h.table.queries == queries


def test_synchronous_spawn_failure_concludes_without_arming_timers(harness_factory, request_x):
    h = harness_factory([True], spawn_fails=True)
    session = h.supervisor.launch(request_x)

    assert h.conclusions == [(session.session_id, "SPAWN_ERROR")]
    assert h.scheduler.timers == []
    assert h.surface.count("show_primary") == 1
    notes = [c for c in h.surface.calls if c[0] == "notify"]
    assert len(notes) == 1
    assert notes[0][1].startswith("Failed to launch App X")
    assert notes[0][2] == "error"
    assert h.supervisor.active_session is None


def test_startup_timeout_after_ten_samples(harness_factory, request_x):
    h = harness_factory([False])
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(9)
    assert h.conclusions == []

    h.scheduler.ticks(1)
    assert h.conclusions == [(session.session_id, "FAILED_TO_START")]
    assert h.table.queries == 10
    assert ("notify", "App X did not start", "error") in h.surface.calls


def test_single_missed_sample_does_not_end_session(harness_factory, request_x):
    h = harness_factory([True, False, True, False, True, False, False])
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(5)
    assert session.phase == "RUNNING"
    assert h.conclusions == []

    h.scheduler.ticks(2)
    assert h.conclusions == [(session.session_id, "ENDED")]


def test_always_present_process_never_concludes(harness_factory, request_x):
    h = harness_factory([True])
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(200)
    assert session.phase == "RUNNING"
    assert h.conclusions == []


def test_ceiling_cancels_without_reconciling(harness_factory, request_x):
    h = harness_factory([True], config={"ceiling_seconds": 11})
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(10)
    assert session.cancelled
    assert session.phase == "CANCELLED"
    assert h.conclusions == []
    assert h.surface.count("show_primary") == 0
    assert "CEILING_REACHED" in h.event_types()
    assert h.supervisor.active_session is None
    assert h.scheduler.pending() == []


def test_ceiling_before_start_clears_tile_loading(harness_factory, request_x):
    h = harness_factory([False], config={"ceiling_seconds": 5})
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(3)

    assert session.phase == "CANCELLED"
    assert not session.saw_running
    assert h.surface.calls == [("loading", "x", False)]
    assert h.conclusions == []
    assert h.scheduler.pending() == []


def test_new_launch_cancels_previous_session_before_spawning(harness_factory, request_x):
    h = harness_factory([False])
    first = h.supervisor.launch(request_x)
    h.scheduler.ticks(1)

    state_at_spawn = []
    original_spawn = h.spawner.spawn

    def spawn(command):
        state_at_spawn.append((first.cancelled, first.poll_timer, first.ceiling_timer))
        return original_spawn(command)

    h.spawner.spawn = spawn
    second = h.supervisor.launch(_request("y"))

    assert state_at_spawn == [(True, None, None)]
    assert first.phase == "CANCELLED"
    assert h.supervisor.active_session is second
    assert len(h.scheduler.pending()) == 2
    cancelled = [e for e in h.events if e["type"] == "SESSION_CANCELLED"]
    assert cancelled[0]["reason"] == "superseded"

    h.scheduler.ticks(10)
    assert h.conclusions == [(second.session_id, "FAILED_TO_START")]
    assert first.ticks == 1


def test_stale_spawn_error_is_discarded(harness_factory, request_x):
    h = harness_factory([False])
    first = h.supervisor.launch(request_x)
    second = h.supervisor.launch(_request("y"))

    h.supervisor.report_spawn_error(first, "late failure")

    assert h.conclusions == []
    assert second.active
    assert h.surface.count("notify") == 0


def test_duplicate_error_reports_reconcile_once(harness_factory, request_x):
    h = harness_factory([False])
    session = h.supervisor.launch(request_x)

    h.supervisor.report_spawn_error(session, "exit status 127")
    h.supervisor.report_spawn_error(session, "exit status 127")
    h.reconciler.conclude(session, "SPAWN_ERROR")

    assert session.status == "SPAWN_ERROR"
    assert h.surface.count("show_primary") == 1
    assert h.surface.count("notify") == 1
    assert h.scheduler.pending() == []


def test_sample_arriving_after_cancel_is_discarded(harness_factory, request_x):
    h = harness_factory([True])
    session = h.supervisor.launch(request_x)
    h.table.on_query = h.supervisor.cancel

    h.scheduler.ticks(1)

    assert session.phase == "CANCELLED"
    assert session.ticks == 0
    assert not session.saw_running
    assert h.conclusions == []
    assert h.scheduler.pending() == []


def test_repeated_query_errors_fail_startup(harness_factory, request_x):
    h = harness_factory(["error"])
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(4)
    assert h.conclusions == []

    h.scheduler.ticks(1)
    assert h.conclusions == [(session.session_id, "FAILED_TO_START")]
    assert session.query_failures == 5


def test_isolated_query_error_while_running_is_a_missed_sample(harness_factory, request_x):
    h = harness_factory([True, "error", True, True])
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(4)
    assert session.phase == "RUNNING"
    assert session.query_failures == 0
    assert h.conclusions == []


def test_early_nonzero_exit_is_a_spawn_error(harness_factory, request_x):
    h = harness_factory([False])
    session = h.supervisor.launch(request_x)
    h.spawner.handles[0].returncode = 1

    h.scheduler.ticks(1)

    assert h.conclusions == [(session.session_id, "SPAWN_ERROR")]
    assert session.detail == "exited with code 1 before starting"
    assert h.table.queries == 0


def test_wrapper_exiting_cleanly_keeps_polling(harness_factory, request_x):
    h = harness_factory([False, True])
    session = h.supervisor.launch(request_x)
    h.spawner.handles[0].returncode = 0

    h.scheduler.ticks(2)

    assert session.phase == "RUNNING"
    assert h.conclusions == []


def test_exited_child_still_listed_under_its_pid_counts_as_gone(harness_factory, request_x):
    h = harness_factory([True])
    h.table.pid = 4000
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(3)
    assert session.phase == "RUNNING"

    h.spawner.handles[0].returncode = 0
    h.scheduler.ticks(1)
    assert session.phase == "ENDING"
    assert h.conclusions == []

    h.scheduler.ticks(1)
    assert h.conclusions == [(session.session_id, "ENDED")]
    assert h.surface.count("show_primary") == 1


def test_child_exiting_while_running_is_not_a_spawn_error(harness_factory, request_x):
    h = harness_factory([True, False])
    session = h.supervisor.launch(request_x)
    h.scheduler.ticks(1)

    h.spawner.handles[0].returncode = 3
    h.scheduler.ticks(2)

    assert h.conclusions == [(session.session_id, "ENDED")]
    assert session.detail is None


def test_cancel_does_not_reconcile_or_kill(harness_factory, request_x):
    h = harness_factory([True])
    session = h.supervisor.launch(request_x)
    h.scheduler.ticks(2)

    assert h.supervisor.cancel() is session
    assert session.cancelled
    assert h.conclusions == []
    assert h.spawner.terminated == []
    assert h.scheduler.pending() == []
    assert h.events[-1]["type"] == "SESSION_CANCELLED"
    assert h.events[-1]["reason"] == "user"
    assert h.supervisor.cancel() is None


def test_terminate_kills_without_cancelling(harness_factory, request_x):
    h = harness_factory([True])
    session = h.supervisor.launch(request_x)
    h.scheduler.ticks(1)

    assert h.supervisor.terminate() == 2
    assert h.spawner.terminated == [[4000, 4242]]
    assert session.active


def test_terminate_after_cancel_targets_last_session(harness_factory, request_x):
    h = harness_factory([True])
    h.supervisor.launch(request_x)
    h.supervisor.cancel()

    h.supervisor.terminate()
    assert h.spawner.terminated == [[4000, 4242]]


def test_shutdown_cancels_active_session(harness_factory, request_x):
    h = harness_factory([False])
    session = h.supervisor.launch(request_x)

    h.supervisor.shutdown()

    assert session.cancelled
    assert h.events[-1]["reason"] == "shutdown"


@pytest.mark.parametrize("samples", list(itertools.product([False, True], repeat=6)))
def test_reconciles_at_most_once_and_stays_terminal(harness_factory, request_x, samples):
    h = harness_factory([*samples, False], config={"start_timeout_ticks": 4})
    session = h.supervisor.launch(request_x)

    h.scheduler.ticks(len(samples) + 6)
    assert len(h.conclusions) == 1
    assert session.concluded

    phase, status, ticks = session.phase, session.status, session.ticks
    h.scheduler.ticks(5)
    assert (session.phase, session.status, session.ticks) == (phase, status, ticks)
    assert h.surface.count("show_primary") == 1
