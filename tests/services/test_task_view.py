"""Tests for the task list controller and its reload signal."""

import asyncio
import datetime as dt

import httpx
import pytest
import pytest_asyncio

from bettertasks.adapters import RestApiTaskRepository
from bettertasks.errors import StoreUnavailableError
from bettertasks.models import TaskUpdate
from bettertasks.services.api.client import BackendClient
from bettertasks.services.task_service import TaskService
from bettertasks.services.task_view import ReloadSignal, TaskListController, ViewState
from tests.fakes import ANON_KEY, BACKEND_URL, FakeSessionService

ANIMATION = 0.05


@pytest.fixture()
def service(task_repo, sessions):
    return TaskService(task_repo, sessions)


@pytest.fixture()
def errors():
    return []


@pytest_asyncio.fixture
async def controller(service, errors):
    ctrl = TaskListController(
        service,
        animation_delay=ANIMATION,
        load_timeout=1.0,
        on_error=errors.append,
    )
    yield ctrl
    await ctrl.close()


def titles(tasks):
    return [t.title for t in tasks]


class TestReloadSignal:
    @pytest.mark.asyncio
    async def test_burst_during_a_reload_runs_exactly_one_more(self):
        calls = 0
        gate = asyncio.Event()

        async def reload():
            nonlocal calls
            calls += 1
            await gate.wait()

        signal = ReloadSignal(reload)
        signal.request()
        await asyncio.sleep(0)
        for _ in range(5):
            signal.request()
        assert signal.pending

        gate.set()
        await signal.wait_idle()

        assert calls == 2
        assert not signal.pending

    @pytest.mark.asyncio
    async def test_wait_idle_returns_after_close_cancels_the_reload(self):
        gate = asyncio.Event()
        signal = ReloadSignal(gate.wait)
        signal.request()
        await asyncio.sleep(0)

        signal.close()
        await signal.wait_idle()

        assert not signal.running

    @pytest.mark.asyncio
    async def test_closed_signal_ignores_requests(self):
        calls = 0

        async def reload():
            nonlocal calls
            calls += 1

        signal = ReloadSignal(reload)
        signal.close()
        signal.request()
        await signal.wait_idle()

        assert calls == 0


class TestLoading:
    @pytest.mark.asyncio
    async def test_initial_load_orders_by_date_then_creation(self, controller, task_repo):
        task_repo.seed("A", date=dt.date(2026, 1, 3))
        task_repo.seed("B", date=dt.date(2026, 1, 1))
        task_repo.seed("C", date=dt.date(2026, 1, 3))
        task_repo.seed("Done", date=dt.date(2026, 1, 1), completed=True)

        await controller.start()

        assert titles(controller.tasks) == ["B", "A", "C"]
        assert controller.state == ViewState.READY
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_reload_replaces_the_list_wholesale(self, controller, task_repo):
        a = task_repo.seed("A", date=dt.date(2026, 1, 3))
        await controller.start()

        task_repo.seed("B", date=dt.date(2026, 1, 1))
        task_repo.seed("C", date=dt.date(2026, 1, 2))
        del task_repo.rows[a.id]
        task_repo.seed("A", date=dt.date(2026, 1, 4))
        await controller.reload()

        assert titles(controller.tasks) == ["B", "C", "A"]

    @pytest.mark.asyncio
    async def test_initial_load_timeout_sets_banner(self, service, task_repo, errors):
        task_repo.list_gate = asyncio.Event()
        controller = TaskListController(service, load_timeout=0.05, on_error=errors.append)

        await controller.start()

        assert controller.error == "Failed to load tasks: timed out after 0.05s"
        assert controller.state == ViewState.READY
        assert controller.tasks == []
        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_failed_reload_keeps_previous_list(self, controller, task_repo, errors):
        task_repo.seed("Keep me")
        await controller.start()

        task_repo.errors["list_all"] = StoreUnavailableError("network down")
        await controller.reload()

        assert titles(controller.tasks) == ["Keep me"]
        assert controller.error == "Failed to load tasks: network down"
        assert controller.state == ViewState.READY
        assert errors
        assert controller.last_error.exit_code == StoreUnavailableError.exit_code

    @pytest.mark.asyncio
    async def test_unreadable_backend_response_sets_banner(self, errors):
        def handler(request):
            return httpx.Response(200, text="<html>gateway</html>")

        client = BackendClient(
            BACKEND_URL, ANON_KEY, access_token="t", transport=httpx.MockTransport(handler)
        )
        service = TaskService(RestApiTaskRepository(client), FakeSessionService())
        controller = TaskListController(service, on_error=errors.append)
        async with client:
            await controller.start()
            await controller.reload()

        assert controller.error == "Failed to load tasks: The backend returned an unreadable response"
        assert controller.state == ViewState.READY
        assert controller.tasks == []
        assert len(errors) == 2

    @pytest.mark.asyncio
    async def test_successful_reload_clears_banner(self, controller, task_repo):
        task_repo.errors["list_all"] = StoreUnavailableError("network down")
        await controller.start()
        assert controller.error

        del task_repo.errors["list_all"]
        await controller.reload()

        assert controller.error is None

    @pytest.mark.asyncio
    async def test_reload_requests_coalesce(self, controller, task_repo):
        await controller.start()
        calls_before = task_repo.list_calls
        task_repo.list_gate = asyncio.Event()

        controller.request_reload()
        await asyncio.sleep(0)
        for _ in range(10):
            controller.request_reload()
        task_repo.list_gate.set()
        await controller.wait_idle()

        assert task_repo.list_calls - calls_before == 2


class TestToggle:
    @pytest.mark.asyncio
    async def test_complete_animates_then_leaves_the_list(self, controller, task_repo):
        task = task_repo.seed("Thing")
        await controller.start()

        updated = await controller.toggle(task.id)

        assert updated.completed is True
        assert updated.completed_at is not None
        assert titles(controller.tasks) == ["Thing"]
        assert controller.tasks[0].completed is True
        assert controller.animating == {task.id}
        assert titles(controller.history) == ["Thing"]

        await asyncio.sleep(ANIMATION * 3)
        await controller.wait_idle()

        assert controller.tasks == []
        assert controller.animating == set()
        assert titles(controller.history) == ["Thing"]

    @pytest.mark.asyncio
    async def test_reload_during_animation_keeps_the_task(self, controller, task_repo):
        task = task_repo.seed("Thing")
        task_repo.seed("Other")
        await controller.start()

        await controller.toggle(task.id)
        await controller.reload()

        assert titles(controller.tasks) == ["Thing", "Other"]
        assert controller.animating == {task.id}

    @pytest.mark.asyncio
    async def test_uncomplete_during_animation_cancels_removal(self, controller, task_repo):
        task = task_repo.seed("Thing")
        await controller.start()

        await controller.toggle(task.id)
        reopened = await controller.toggle(task.id)
        await asyncio.sleep(ANIMATION * 3)
        await controller.wait_idle()

        assert reopened.completed is False
        assert reopened.completed_at is None
        assert titles(controller.tasks) == ["Thing"]
        assert controller.animating == set()
        assert controller.history == []

    @pytest.mark.asyncio
    async def test_uncomplete_from_history_returns_to_the_list(self, controller, task_repo):
        task_repo.seed("Early", date=dt.date(2026, 1, 1))
        done = task_repo.seed(
            "Done",
            date=dt.date(2026, 1, 2),
            completed=True,
            completed_at=dt.datetime(2026, 1, 2, tzinfo=dt.timezone.utc),
        )
        task_repo.seed("Late", date=dt.date(2026, 1, 3))
        await controller.start()
        await controller.load_history()
        assert titles(controller.history) == ["Done"]

        await controller.toggle(done.id)

        assert titles(controller.tasks) == ["Early", "Done", "Late"]
        assert controller.history == []

    @pytest.mark.asyncio
    async def test_failed_toggle_changes_nothing(self, controller, task_repo, errors):
        task = task_repo.seed("Thing")
        await controller.start()
        task_repo.errors["update"] = StoreUnavailableError("timeout")

        result = await controller.toggle(task.id)

        assert result is None
        assert controller.tasks[0].completed is False
        assert controller.animating == set()
        assert controller.history == []
        assert controller.error == "timeout"
        assert errors[-1].message == "timeout"

    @pytest.mark.asyncio
    async def test_settle_waits_for_animation_and_reload(self, controller, task_repo):
        task = task_repo.seed("Thing")
        task_repo.seed("Other")
        await controller.start()
        calls = task_repo.list_calls

        await controller.toggle(task.id)
        await controller.settle()

        assert titles(controller.tasks) == ["Other"]
        assert controller.animating == set()
        assert task_repo.list_calls == calls + 1

    @pytest.mark.asyncio
    async def test_failed_toggle_keeps_the_cause(self, controller, task_repo):
        task = task_repo.seed("Thing")
        await controller.start()
        cause = StoreUnavailableError("timeout")
        task_repo.errors["update"] = cause

        await controller.toggle(task.id)

        assert controller.last_error is cause
        del task_repo.errors["update"]
        await controller.reload()
        assert controller.last_error is None

    @pytest.mark.asyncio
    async def test_unknown_task_is_surfaced(self, controller, errors):
        await controller.start()
        assert await controller.toggle("missing") is None
        assert "missing" in controller.error


class TestEdits:
    @pytest.mark.asyncio
    async def test_create_appends_then_reload_sorts(self, controller, task_repo):
        task_repo.seed("Later", date=dt.date(2030, 1, 1))
        await controller.start()

        created = await controller.create_task("Sooner", date=dt.date(2020, 1, 1))
        assert controller.tasks[-1].id == created.id

        await controller.wait_idle()
        assert titles(controller.tasks) == ["Sooner", "Later"]

    @pytest.mark.asyncio
    async def test_failed_create_leaves_list_alone(self, controller, errors):
        await controller.start()
        assert await controller.create_task("   ") is None
        assert controller.tasks == []
        assert errors

    @pytest.mark.asyncio
    async def test_update_replaces_in_place(self, controller, task_repo):
        task = task_repo.seed("Old title")
        await controller.start()

        await controller.update_task(task.id, TaskUpdate(title="New title"))

        assert titles(controller.tasks) == ["New title"]
        await controller.wait_idle()
        assert titles(controller.tasks) == ["New title"]

    @pytest.mark.asyncio
    async def test_delete_removes_from_list_and_history(self, controller, task_repo):
        open_task = task_repo.seed("Open")
        done = task_repo.seed("Done", completed=True, completed_at=dt.datetime.now(dt.timezone.utc))
        await controller.start()
        await controller.load_history()

        assert await controller.delete(open_task.id) is True
        assert await controller.delete(done.id) is True

        assert controller.tasks == []
        assert controller.history == []
        assert task_repo.rows == {}

    @pytest.mark.asyncio
    async def test_failed_history_load_keeps_buffer(self, controller, task_repo):
        task_repo.seed("Done", completed=True, completed_at=dt.datetime.now(dt.timezone.utc))
        await controller.load_history()
        task_repo.errors["list_all"] = StoreUnavailableError("down")

        assert await controller.load_history() is False
        assert titles(controller.history) == ["Done"]


class TestClose:
    @pytest.mark.asyncio
    async def test_late_reload_results_are_discarded(self, controller, task_repo):
        task_repo.seed("First")
        await controller.start()
        task_repo.seed("Second")
        task_repo.list_gate = asyncio.Event()

        controller.request_reload()
        await asyncio.sleep(0)
        await controller.close()
        await controller.wait_idle()
        task_repo.list_gate.set()
        await asyncio.sleep(0.01)

        assert titles(controller.tasks) == ["First"]

    @pytest.mark.asyncio
    async def test_close_cancels_pending_animation(self, controller, task_repo):
        task = task_repo.seed("Thing")
        await controller.start()
        await controller.toggle(task.id)

        await controller.close()
        await asyncio.sleep(ANIMATION * 3)

        assert titles(controller.tasks) == ["Thing"]
        assert controller.animating == set()
