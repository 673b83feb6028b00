"""Tests for concurrent batch backup and restore.

Verifies fan-out/fan-in, per-table failure isolation, aggregate status
messages, enumeration-level aborts, and a backup -> restore round trip.
"""

import asyncio
import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from db_snapshot.adapters.models import DatabaseStats, TableStats
from db_snapshot.backup.models import BatchResult, TableOutcome
from db_snapshot.backup.orchestrator import backup_database, restore_database, run_batch


def _make_mock_client(
    tables: dict[str, list[dict]] | None = None,
    failing_selects: set[str] | None = None,
    failing_upserts: set[str] | None = None,
) -> AsyncMock:
    """AsyncMock client backed by an in-memory ``{table: rows}`` dict.

    ``upsert`` stores rows in ``client.written[table]``.
    """
    tables = tables if tables is not None else {}
    failing_selects = failing_selects or set()
    failing_upserts = failing_upserts or set()
    client = AsyncMock()
    client.written = {}

    async def _stats():
        return DatabaseStats(
            tables={name: TableStats(count=len(rows)) for name, rows in tables.items()}
        )

    async def _select(table, columns="*", filters=None, order_by=None):
        if table in failing_selects:
            raise RuntimeError(f"select on {table} failed")
        return list(tables.get(table, []))

    async def _upsert(table, rows):
        if table in failing_upserts:
            raise RuntimeError(f"upsert on {table} failed")
        client.written[table] = rows
        return len(rows)

    client.stats = AsyncMock(side_effect=_stats)
    client.select = AsyncMock(side_effect=_select)
    client.upsert = AsyncMock(side_effect=_upsert)
    return client


# ------------------------------------------------------------------
# run_batch
# ------------------------------------------------------------------


class TestRunBatch:
    """run_batch runs every operation concurrently and waits for all."""

    async def test_operations_run_concurrently(self):
        """Each operation waits until all have started; sequential runs would hang."""
        tables = ["a", "b", "c"]
        started: list[str] = []
        all_started = asyncio.Event()

        async def operation(table):
            started.append(table)
            if len(started) == len(tables):
                all_started.set()
            await all_started.wait()
            return TableOutcome.success(table)

        outcomes = await asyncio.wait_for(run_batch(tables, operation), timeout=5)

        assert [o.table for o in outcomes] == tables
        assert all(o.succeeded for o in outcomes)

    async def test_outcomes_in_enumeration_order(self):
        delays = {"slow": 0.05, "fast": 0.0, "medium": 0.02}

        async def operation(table):
            await asyncio.sleep(delays[table])
            return TableOutcome.success(table)

        outcomes = await run_batch(["slow", "fast", "medium"], operation)

        assert [o.table for o in outcomes] == ["slow", "fast", "medium"]

    async def test_no_early_exit_on_failure(self):
        finished: list[str] = []

        async def operation(table):
            if table == "bad":
                return TableOutcome.failure(table, "boom")
            await asyncio.sleep(0.01)
            finished.append(table)
            return TableOutcome.success(table)

        outcomes = await run_batch(["bad", "good1", "good2"], operation)

        assert sorted(finished) == ["good1", "good2"]
        assert [o.succeeded for o in outcomes] == [False, True, True]

    async def test_escaped_exception_becomes_failed_outcome(self, caplog):
        async def operation(table):
            if table == "bad":
                raise RuntimeError("unexpected")
            return TableOutcome.success(table)

        with caplog.at_level(logging.WARNING):
            outcomes = await run_batch(["ok", "bad"], operation)

        assert outcomes[0].succeeded is True
        assert outcomes[1].succeeded is False
        assert outcomes[1].error == "unexpected"
        assert "bad" in caplog.text

    async def test_empty_table_list(self):
        async def operation(table):
            raise AssertionError("should not be called")

        assert await run_batch([], operation) == []


# ------------------------------------------------------------------
# BatchResult
# ------------------------------------------------------------------


class TestBatchResultMessage:
    """Aggregate message lists successes; failure only when none succeeded."""

    def test_all_succeeded(self):
        result = BatchResult(
            operation="backup",
            outcomes=[TableOutcome.success("a"), TableOutcome.success("b")],
        )
        assert result.ok is True
        assert result.message == "Backed up a, b"

    def test_partial_success_lists_only_successes(self):
        result = BatchResult(
            operation="restore",
            outcomes=[
                TableOutcome.failure("a", "x"),
                TableOutcome.success("b"),
                TableOutcome.failure("c", "y"),
                TableOutcome.success("d"),
            ],
        )
        assert result.ok is True
        assert result.message == "Restored b, d"
        assert [o.table for o in result.failed] == ["a", "c"]

    def test_all_failed(self):
        result = BatchResult(
            operation="backup",
            outcomes=[TableOutcome.failure("a", "x")],
        )
        assert result.ok is False
        assert result.message == "Backup failed, check the logs"

    def test_no_tables(self):
        assert BatchResult(operation="backup").message == "Backup failed, check the logs"
        assert BatchResult(operation="restore").message == "Restore failed, check the logs"


# ------------------------------------------------------------------
# backup_database
# ------------------------------------------------------------------


class TestBackupDatabase:
    """backup_database backs up statistics tables plus extras."""

    async def test_one_failing_table_does_not_affect_others(self, tmp_path):
        client = _make_mock_client(
            {"A": [{"id": 1}], "B": [{"id": 2}], "C": [{"id": 3}]},
            failing_selects={"B"},
        )

        result = await backup_database(client, tmp_path)

        assert result.succeeded == ["A", "C"]
        assert [o.table for o in result.failed] == ["B"]
        assert result.message == "Backed up A, C"
        assert (tmp_path / "A").exists()
        assert (tmp_path / "C").exists()
        assert not (tmp_path / "B").exists()

    async def test_creates_directory_tree(self, tmp_path):
        directory = tmp_path / "data" / "dbm"
        client = _make_mock_client({"users": [{"id": 1}]})

        first = await backup_database(client, directory)
        second = await backup_database(client, directory)

        assert directory.is_dir()
        assert first.ok and second.ok
        assert second.message == "Backed up users"

    async def test_extra_tables_appended(self, tmp_path):
        client = _make_mock_client({"users": [], "UserSettings": [{"id": 1}]})
        client.stats = AsyncMock(
            return_value=DatabaseStats(tables={"users": TableStats()})
        )

        result = await backup_database(client, tmp_path, extra_tables=["UserSettings"])

        assert result.succeeded == ["users", "UserSettings"]
        assert (tmp_path / "UserSettings").exists()

    async def test_duplicate_table_attempted_twice(self, tmp_path):
        client = _make_mock_client({"users": [{"id": 1}]})

        result = await backup_database(client, tmp_path, extra_tables=["users"])

        assert client.select.await_count == 2
        assert result.message == "Backed up users, users"

    async def test_zero_tables_is_failure(self, tmp_path, caplog):
        client = _make_mock_client({})

        with caplog.at_level(logging.WARNING):
            result = await backup_database(client, tmp_path)

        assert result.ok is False
        assert result.message == "Backup failed, check the logs"
        assert "Backup failed" in caplog.text

    async def test_all_tables_failing_is_failure(self, tmp_path):
        client = _make_mock_client({"a": [], "b": []}, failing_selects={"a", "b"})

        result = await backup_database(client, tmp_path)

        assert result.ok is False
        assert len(result.failed) == 2

    async def test_stats_failure_aborts_batch(self, tmp_path, caplog):
        client = _make_mock_client({"users": []})
        client.stats = AsyncMock(side_effect=RuntimeError("stats unavailable"))

        with caplog.at_level(logging.WARNING):
            result = await backup_database(client, tmp_path, extra_tables=["extra"])

        assert result.ok is False
        assert result.outcomes == []
        assert "stats unavailable" in result.error
        assert result.message == "Backup failed, check the logs"
        client.select.assert_not_awaited()
        assert "stats unavailable" in caplog.text

    async def test_directory_failure_aborts_batch(self, tmp_path):
        blocker = tmp_path / "dbm"
        blocker.write_text("")
        client = _make_mock_client({"users": []})

        result = await backup_database(client, blocker)

        assert result.ok is False
        assert result.error is not None
        client.stats.assert_not_awaited()

    async def test_absolute_extra_table_stays_in_directory(self, tmp_path):
        directory = tmp_path / "data" / "dbm"
        outside = tmp_path / "outside"
        outside.mkdir()
        victim = str(outside / "victim")
        client = _make_mock_client({"users": [{"id": 1}], victim: [{"id": 2}]})
        client.stats = AsyncMock(
            return_value=DatabaseStats(tables={"users": TableStats()})
        )

        result = await backup_database(client, directory, extra_tables=[victim])

        assert not (outside / "victim").exists()
        assert result.succeeded == ["users"]
        assert [o.table for o in result.failed] == [victim]

    async def test_success_logged_at_info(self, tmp_path, caplog):
        client = _make_mock_client({"users": []})

        with caplog.at_level(logging.INFO, logger="db_snapshot"):
            await backup_database(client, tmp_path)

        infos = [r for r in caplog.records if r.levelno == logging.INFO]
        assert any(r.getMessage() == "Backed up users" for r in infos)


# ------------------------------------------------------------------
# restore_database
# ------------------------------------------------------------------


class TestRestoreDatabase:
    """restore_database restores every snapshot file in the directory."""

    async def test_missing_directory_is_failure(self, tmp_path):
        client = _make_mock_client()

        result = await restore_database(client, tmp_path / "missing")

        assert result.ok is False
        assert result.message == "Restore failed, check the logs"
        client.upsert.assert_not_awaited()

    async def test_bad_snapshot_does_not_block_siblings(self, tmp_path):
        (tmp_path / "accounts").write_bytes(b'[{"id": 1}]')
        (tmp_path / "broken").write_bytes(b"not json")
        (tmp_path / "users").write_bytes(b'[{"id": 2}]')
        client = _make_mock_client()

        result = await restore_database(client, tmp_path)

        assert result.message == "Restored accounts, users"
        assert client.written == {"accounts": [{"id": 1}], "users": [{"id": 2}]}

    async def test_upsert_failure_isolated(self, tmp_path):
        (tmp_path / "a").write_bytes(b"[]")
        (tmp_path / "b").write_bytes(b"[]")
        client = _make_mock_client(failing_upserts={"a"})

        result = await restore_database(client, tmp_path)

        assert result.succeeded == ["b"]

    async def test_directory_listing_failure_aborts(self, tmp_path):
        blocker = tmp_path / "dbm"
        blocker.write_text("")
        client = _make_mock_client()

        result = await restore_database(client, blocker)

        assert result.ok is False
        assert result.error is not None


# ------------------------------------------------------------------
# Round trip
# ------------------------------------------------------------------


class TestRoundTrip:
    """Backup then restore writes back the same rows, instants included."""

    async def test_backup_then_restore(self, tmp_path):
        rows = {
            "users": [
                {
                    "id": 1,
                    "name": "Alice",
                    "created_at": datetime(2024, 5, 1, 12, 0, 0, 123000, tzinfo=timezone.utc),
                    "profile": {"langs": ["en", "zh"], "verified": True},
                },
            ],
            "orders": [{"id": 10, "total": 9.5, "note": None}],
        }
        source = _make_mock_client(rows)
        target = _make_mock_client()

        backup = await backup_database(source, tmp_path)
        restore = await restore_database(target, tmp_path)

        assert backup.ok and restore.ok
        assert restore.message == "Restored orders, users"
        assert target.written == rows


@pytest.mark.parametrize(
    "succeeding",
    [set(), {"t1"}, {"t0", "t3"}, {"t0", "t1", "t2", "t3"}],
)
async def test_message_lists_exactly_successes(tmp_path, succeeding):
    names = ["t0", "t1", "t2", "t3"]
    client = _make_mock_client(
        {name: [] for name in names},
        failing_selects={n for n in names if n not in succeeding},
    )

    result = await backup_database(client, tmp_path)

    expected = [n for n in names if n in succeeding]
    if expected:
        assert result.message == "Backed up " + ", ".join(expected)
    else:
        assert result.message == "Backup failed, check the logs"
