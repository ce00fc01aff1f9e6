"""Tests for the runner executor and entry point."""

import io
import json
from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from optin_manager.exceptions import DeliveryError
from optin_manager.notifiers import OutboxNotifier
from optin_manager.runner import Executor, RunnerInput
from optin_manager.runner.__main__ import main
from optin_manager.stores import InMemorySubscriptionStore
from optin_manager.subscription import Subscription


@pytest.fixture
def runner_store():
    return InMemorySubscriptionStore()


@pytest.fixture
def outbox():
    return OutboxNotifier()


@pytest.fixture
def executor(runner_store, outbox):
    return Executor(store=runner_store, notifier=outbox)


class TestCreate:
    async def test_create_returns_public_view(self, executor, outbox):
        output = await executor.execute(
            RunnerInput(action="create", email="a@b.c", start_on="2015-01-31")
        )

        assert output.success
        assert output.result["email"] == "a@b.c"
        assert output.result["confirmed"] is False
        assert output.result["start_on"] == "2015-01-31"
        assert output.result["id"] == outbox.outbox[0].confirmation_url.split("/")[-2]

    async def test_validation_failure(self, executor):
        output = await executor.execute(RunnerInput(action="create", email=""))

        assert not output.success
        assert output.error_type == "ValidationError"
        assert output.fields == {"email": ["can't be blank"]}

    async def test_delivery_failure(self, runner_store):
        notifier = AsyncMock()
        notifier.send_confirmation_request.side_effect = DeliveryError("Mail API down")
        executor = Executor(store=runner_store, notifier=notifier)

        output = await executor.execute(RunnerInput(action="create", email="a@b.c"))

        assert not output.success
        assert output.error_type == "DeliveryError"
        assert output.error == "Mail API down"
        assert not await runner_store.exists()


class TestConfirm:
    async def test_confirm_round_trip(self, executor):
        created = await executor.execute(RunnerInput(action="create", email="a@b.c"))
        output = await executor.execute(RunnerInput(action="confirm", token=created.result["id"]))

        assert output.success
        assert output.result["confirmed"] is True

    async def test_unknown_token(self, executor):
        output = await executor.execute(RunnerInput(action="confirm", token="unknown-token"))

        assert not output.success
        assert output.error_type == "NotFoundError"

    async def test_missing_token(self, executor):
        output = await executor.execute(RunnerInput(action="confirm"))

        assert not output.success
        assert output.error_type == "ExecutionError"


class TestOverdue:
    async def test_overdue_uses_given_now(self, executor, runner_store):
        created_at = datetime(2015, 1, 1, tzinfo=UTC)
        await runner_store.insert(
            Subscription(
                email="old@x.y",
                confirmation_token="tok",
                start_on=date(2015, 1, 1),
                created_at=created_at,
            )
        )

        output = await executor.execute(
            RunnerInput(action="overdue", now=created_at + timedelta(days=3, seconds=1))
        )
        assert output.success
        assert [s["id"] for s in output.result] == ["tok"]

        output = await executor.execute(
            RunnerInput(action="overdue", now=created_at + timedelta(days=3))
        )
        assert output.result == []

    async def test_overdue_accepts_timestamp_without_offset(self, executor, runner_store):
        await runner_store.insert(
            Subscription(
                email="old@x.y",
                confirmation_token="tok",
                start_on=date(2015, 1, 1),
                created_at=datetime(2015, 1, 1, tzinfo=UTC),
            )
        )

        output = await executor.execute(
            RunnerInput.model_validate_json('{"action": "overdue", "now": "2015-01-10T00:00:00"}')
        )

        assert output.success
        assert [s["id"] for s in output.result] == ["tok"]

    async def test_grace_period_override(self, executor, runner_store):
        created_at = datetime(2015, 1, 1, tzinfo=UTC)
        await runner_store.insert(
            Subscription(
                email="old@x.y",
                confirmation_token="tok",
                start_on=date(2015, 1, 1),
                created_at=created_at,
            )
        )

        output = await executor.execute(
            RunnerInput(
                action="overdue",
                now=created_at + timedelta(hours=2),
                grace_period_seconds=3600,
            )
        )
        assert len(output.result) == 1


class TestConfiguration:
    async def test_sqlite_requires_path(self):
        output = await Executor().execute(
            RunnerInput(action="overdue", store={"type": "sqlite", "path": ""})
        )

        assert not output.success
        assert output.error_type == "ExecutionError"

    async def test_sqlite_store_persists_between_runs(self, tmp_path):
        store_config = {"type": "sqlite", "path": str(tmp_path / "subs.db")}

        created = await Executor().execute(
            RunnerInput(action="create", email="a@b.c", store=store_config)
        )
        confirmed = await Executor().execute(
            RunnerInput(action="confirm", token=created.result["id"], store=store_config)
        )

        assert created.success
        assert confirmed.success
        assert confirmed.result["confirmed"] is True

    async def test_http_notifier_without_config_fails_and_rolls_back(self, monkeypatch, tmp_path):
        monkeypatch.delenv("MAILER_URL", raising=False)
        monkeypatch.delenv("MAILER_API_TOKEN", raising=False)
        store_config = {"type": "sqlite", "path": str(tmp_path / "subs.db")}

        output = await Executor().execute(
            RunnerInput(
                action="create",
                email="a@b.c",
                store=store_config,
                notifier={"type": "http"},
            )
        )
        assert not output.success
        assert output.error_type == "DeliveryError"

        retry = await Executor().execute(
            RunnerInput(action="create", email="a@b.c", store=store_config)
        )
        assert retry.success


class TestMain:
    def test_main_success(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps({"action": "overdue"})))

        assert main() == 0
        assert json.loads(capsys.readouterr().out) == {
            "success": True,
            "result": [],
            "error": "",
            "error_type": "",
            "fields": {},
        }

    def test_main_invalid_input(self, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps({"action": "unsubscribe"})))

        assert main() == 1
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is False
        assert output["error_type"] == "ValidationError"
