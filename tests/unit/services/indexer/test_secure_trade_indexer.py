# -*- coding: utf-8 -*-
"""End-to-end tests for SecureTradeIndexer over in-memory repositories and a fake mirror."""

from __future__ import annotations

import itertools
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from secure_trade_indexer.clients.mirror_node import LogPage
from secure_trade_indexer.exceptions import (
    AddressResolutionError,
    ApiRequestError,
    InvalidConfigError,
    MissingRequiredConfigError,
    PassDeadlineExceededError,
    ScanInProgressError,
)
from secure_trade_indexer.models.cache_record import TradeCacheRecord
from secure_trade_indexer.persistence.repositories.in_memory import (
    InMemoryCheckpointRepository,
    InMemoryTradeCacheRepository,
    default_record_validator,
)
from secure_trade_indexer.services.address_resolution import AddressResolver
from secure_trade_indexer.services.cache_writer import TradeCacheWriter
from secure_trade_indexer.services.event_decoding import EventDecoder
from secure_trade_indexer.services.indexer import ScanGuard, SecureTradeIndexer
from secure_trade_indexer.utils.timestamps import timestamp_key

ALIAS = "0x" + "ab" * 20


class FakeMirror:
    """Serves a fixed log corpus with the mirror's `timestamp > since` filter and paging."""

    def __init__(self, logs: list[dict[str, Any]] | None = None, *, page_size: int = 100) -> None:
        self.logs = list(logs or [])
        self.page_size = page_size
        self.since_calls: list[str | None] = []
        self.fail_fetches = 0
        self.get_account = AsyncMock(return_value="0.0.777")

    async def fetch_logs(
        self,
        contract: str,
        since_timestamp: str | None = None,
    ) -> AsyncIterator[LogPage]:
        self.since_calls.append(since_timestamp)
        if self.fail_fetches:
            self.fail_fetches -= 1
            raise ApiRequestError("mirror unavailable", status_code=503)
        selected = [
            log
            for log in self.logs
            if since_timestamp is None
            or timestamp_key(log["timestamp"]) > timestamp_key(since_timestamp)
        ]
        chunks = [
            selected[i : i + self.page_size] for i in range(0, len(selected), self.page_size)
        ] or [[]]
        for i, chunk in enumerate(chunks):
            last = i == len(chunks) - 1
            yield LogPage(logs=chunk, next_cursor=None if last else f"/api/v1/next/{i}")


def _indexer(
    mirror: FakeMirror,
    settings: Any,
    checkpoint_repo: Any,
    cache_repo: Any,
    **kwargs: Any,
) -> SecureTradeIndexer:
    kwargs.setdefault("sleep", AsyncMock())
    return SecureTradeIndexer(
        mirror_client=mirror,  # type: ignore[arg-type]
        decoder=EventDecoder(),
        address_resolver=AddressResolver(mirror, settings, sleep=AsyncMock()),  # type: ignore[arg-type]
        checkpoint_repository=checkpoint_repo,
        cache_writer=TradeCacheWriter(cache_repo, settings),
        settings=settings,
        **kwargs,
    )


def _rows(cache_repo: InMemoryTradeCacheRepository) -> list[tuple[int, int, bool, bool]]:
    return [(r.serial, r.nonce, r.completed, r.cancelled) for r in cache_repo.all()]


async def test_fresh_run_single_create(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    mirror = FakeMirror([log_factory.created(serial=5, nonce=1, timestamp="1000", tinybar_price=100)])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    [row] = cache_repo.all()
    assert (row.serial, row.nonce, row.completed, row.cancelled) == (5, 1, False, False)
    assert (row.seller, row.buyer, row.token_id) == ("0.0.1001", "0.0.0", "0.0.5005")
    assert (row.contract, row.environment) == (contract, environment)
    assert await checkpoint_repo.load(contract, environment) == "1000"
    assert result.trades_written == 1
    assert result.previous_watermark is None
    assert mirror.since_calls == [None]


async def test_create_then_complete_in_same_pass(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    mirror = FakeMirror(
        [
            log_factory.created(serial=5, nonce=7, timestamp="1000"),
            log_factory.completed(serial=5, nonce=8, timestamp="1005"),
        ]
    )
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    await indexer.run(contract)

    assert _rows(cache_repo) == [(5, 7, True, False)]
    assert await checkpoint_repo.load(contract, environment) == "1005"


async def test_late_complete_across_passes(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    mirror = FakeMirror([log_factory.created(serial=5, nonce=3, timestamp="1000")])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)
    await indexer.run(contract)

    mirror.logs.append(log_factory.completed(serial=5, nonce=4, timestamp="2000"))
    result = await indexer.run(contract)

    assert mirror.since_calls == [None, "1000"]
    assert _rows(cache_repo) == [(5, 3, True, False)]
    assert result.late_terminals_applied == 1
    assert result.trades_written == 0
    assert await checkpoint_repo.load(contract, environment) == "2000"


async def test_late_terminal_for_missing_row_is_skipped(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    mirror = FakeMirror([log_factory.cancelled(serial=8, nonce=4, timestamp="2000")])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    assert cache_repo.all() == []
    assert result.late_terminals_missed == 1
    assert await checkpoint_repo.load(contract, environment) == "2000"


async def test_duplicate_replay_after_rewound_watermark_writes_nothing(
    settings: Any,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
) -> None:
    mirror = FakeMirror([log_factory.created(serial=5, nonce=9, timestamp="1000")])
    await _indexer(mirror, settings, InMemoryCheckpointRepository(), cache_repo).run(contract)

    rewound = InMemoryCheckpointRepository()
    result = await _indexer(mirror, settings, rewound, cache_repo).run(contract)

    assert _rows(cache_repo) == [(5, 9, False, False)]
    assert result.trades_written == 0
    assert result.trades_skipped_by_nonce == 1


async def test_replayed_trade_terminal_in_window_flags_existing_row(
    settings: Any,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
) -> None:
    mirror = FakeMirror([log_factory.created(serial=5, nonce=9, timestamp="1000")])
    await _indexer(mirror, settings, InMemoryCheckpointRepository(), cache_repo).run(contract)

    mirror.logs.append(log_factory.cancelled(serial=5, nonce=10, timestamp="1001"))
    result = await _indexer(mirror, settings, InMemoryCheckpointRepository(), cache_repo).run(contract)

    assert _rows(cache_repo) == [(5, 9, False, True)]
    assert result.late_terminals_applied == 1


async def test_rejected_record_is_dropped_and_the_rest_persisted(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    log_factory: Any,
    contract: str,
) -> None:
    cache_repo = InMemoryTradeCacheRepository(
        validator=lambda r: default_record_validator(r) and r.serial != 3
    )
    mirror = FakeMirror(
        [
            log_factory.created(serial=1, nonce=1, timestamp="1"),
            log_factory.created(serial=2, nonce=2, timestamp="2"),
            log_factory.created(serial=3, nonce=3, timestamp="3"),
        ]
    )
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    assert [r.serial for r in cache_repo.all()] == [1, 2]
    assert [r.serial for r in result.rejected] == [3]
    assert isinstance(result.rejected[0], TradeCacheRecord)


async def test_unknown_environment_fails_before_any_call(
    settings_factory: Any,
    cache_repo: Any,
    contract: str,
) -> None:
    settings = settings_factory(mirror={"environment": "staging"})
    checkpoint = AsyncMock()
    mirror = FakeMirror()
    indexer = _indexer(mirror, settings, checkpoint, cache_repo)

    with pytest.raises(InvalidConfigError):
        await indexer.run(contract)

    assert mirror.since_calls == []
    checkpoint.load.assert_not_called()


@pytest.mark.parametrize(
    ("value", "error"),
    [(None, MissingRequiredConfigError), ("  ", MissingRequiredConfigError), ("abc", InvalidConfigError)],
)
async def test_contract_is_validated(
    settings: Any,
    checkpoint_repo: Any,
    cache_repo: Any,
    value: str | None,
    error: type[Exception],
) -> None:
    mirror = FakeMirror()
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    with pytest.raises(error):
        await indexer.run(value)
    assert mirror.since_calls == []


async def test_empty_page_writes_nothing_and_keeps_watermark(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    contract: str,
    environment: str,
) -> None:
    await checkpoint_repo.save(contract, environment, "500")
    indexer = _indexer(FakeMirror(), settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    assert cache_repo.create_calls == 0
    assert result.watermark == "500"
    assert result.watermark_advanced is False
    assert await checkpoint_repo.load(contract, environment) == "500"


async def test_empty_data_logs_still_advance_watermark(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    mirror = FakeMirror([log_factory.empty(timestamp="10.5"), log_factory.empty(timestamp="11.25")])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    assert cache_repo.create_calls == 0
    assert result.logs_seen == 2
    assert result.events_decoded == 0
    assert await checkpoint_repo.load(contract, environment) == "11.25"


async def test_create_and_cancel_in_same_pass_written_once(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
) -> None:
    mirror = FakeMirror(
        [
            log_factory.created(serial=6, nonce=1, timestamp="1"),
            log_factory.cancelled(serial=6, nonce=2, timestamp="2"),
        ]
    )
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    await indexer.run(contract)

    assert _rows(cache_repo) == [(6, 1, False, True)]
    assert cache_repo.create_calls == 1


async def test_malformed_log_is_skipped(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    broken = log_factory.created(serial=1, nonce=1, timestamp="1")
    broken["data"] = "0x1234"
    mirror = FakeMirror([broken, log_factory.created(serial=2, nonce=2, timestamp="2")])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    assert [r.serial for r in cache_repo.all()] == [2]
    assert result.decode_errors == 1
    assert await checkpoint_repo.load(contract, environment) == "2"


async def test_passes_are_idempotent_from_the_same_watermark(
    settings: Any,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
) -> None:
    mirror = FakeMirror(
        [
            log_factory.created(serial=1, nonce=1, timestamp="1"),
            log_factory.created(serial=2, nonce=2, timestamp="2"),
            log_factory.completed(serial=1, nonce=3, timestamp="3"),
            log_factory.created(serial=3, nonce=4, timestamp="4", buyer=ALIAS),
            log_factory.cancelled(serial=2, nonce=5, timestamp="5"),
        ],
        page_size=2,
    )

    snapshots = []
    for _ in range(3):
        await _indexer(mirror, settings, InMemoryCheckpointRepository(), cache_repo).run(contract)
        snapshots.append([r.to_row() for r in cache_repo.all()])

    assert snapshots[0] == snapshots[1] == snapshots[2]
    assert _rows(cache_repo) == [(1, 1, True, False), (2, 2, False, True), (3, 4, False, False)]
    assert cache_repo.all()[2].buyer == "0.0.777"


async def test_watermark_never_moves_backwards(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    mirror = FakeMirror([log_factory.created(serial=1, nonce=1, timestamp="100")])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)
    await indexer.run(contract)

    # A log behind the watermark is filtered by the mirror and cannot rewind it.
    mirror.logs.append(log_factory.empty(timestamp="50"))
    await indexer.run(contract)

    assert await checkpoint_repo.load(contract, environment) == "100"


async def test_transient_mirror_failures_are_retried(
    settings_factory: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
) -> None:
    settings = settings_factory(scanner={"max_pass_attempts": 3, "pass_retry_backoff_seconds": 1.0})
    mirror = FakeMirror([log_factory.created(serial=1, nonce=1, timestamp="1")])
    mirror.fail_fetches = 2
    sleep = AsyncMock()
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo, sleep=sleep)

    result = await indexer.run(contract)

    assert result.trades_written == 1
    assert len(mirror.since_calls) == 3
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]


async def test_failed_pass_leaves_watermark_untouched(
    settings_factory: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    settings = settings_factory(scanner={"max_pass_attempts": 2})
    mirror = FakeMirror([log_factory.created(serial=1, nonce=1, timestamp="1")])
    mirror.fail_fetches = 5
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    with pytest.raises(ApiRequestError):
        await indexer.run(contract)

    assert len(mirror.since_calls) == 2
    assert cache_repo.all() == []
    assert await checkpoint_repo.load(contract, environment) is None


async def test_unresolvable_address_aborts_the_pass(
    settings_factory: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    settings = settings_factory(scanner={"resolver_max_attempts": 2})
    mirror = FakeMirror([log_factory.created(serial=1, nonce=1, timestamp="1", buyer=ALIAS)])
    mirror.get_account.side_effect = ApiRequestError("not found", status_code=404)
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    with pytest.raises(AddressResolutionError):
        await indexer.run(contract)

    assert len(mirror.since_calls) == 1
    assert cache_repo.all() == []
    assert await checkpoint_repo.load(contract, environment) is None


async def test_deadline_aborts_without_advancing_watermark(
    settings_factory: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    settings = settings_factory(scanner={"pass_deadline_seconds": 5.0})
    ticks = itertools.count(0.0, 10.0)
    mirror = FakeMirror([log_factory.created(serial=1, nonce=1, timestamp="1")])
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo, clock=lambda: next(ticks))

    with pytest.raises(PassDeadlineExceededError):
        await indexer.run(contract)

    assert cache_repo.all() == []
    assert await checkpoint_repo.load(contract, environment) is None


async def test_concurrent_pass_for_same_pair_is_refused(
    settings: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    cache_repo: InMemoryTradeCacheRepository,
    contract: str,
    environment: str,
) -> None:
    guard = ScanGuard()
    mirror = FakeMirror()
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo, scan_guard=guard)

    async with guard.hold(contract, environment):
        with pytest.raises(ScanInProgressError):
            await indexer.run(contract)

    assert mirror.since_calls == []
    assert guard.is_active(contract, environment) is False
    await indexer.run(contract)
    assert mirror.since_calls == [None]


class _FlakyCacheRepository(InMemoryTradeCacheRepository):
    """Fails the Nth create_many call once with a 503."""

    def __init__(self, fail_on_call: int) -> None:
        super().__init__()
        self._fail_on_call = fail_on_call

    async def create_many(self, records: Any) -> int:
        if self.create_calls + 1 == self._fail_on_call:
            self.create_calls += 1
            self._fail_on_call = 0
            raise ApiRequestError("content store unavailable", status_code=503)
        return await super().create_many(records)


async def test_relisting_is_written_in_nonce_order_and_survives_partial_write(
    settings_factory: Any,
    checkpoint_repo: InMemoryCheckpointRepository,
    log_factory: Any,
    contract: str,
    environment: str,
) -> None:
    settings = settings_factory(scanner={"batch_size": 1, "max_pass_attempts": 2})
    cache_repo = _FlakyCacheRepository(fail_on_call=2)
    mirror = FakeMirror(
        [
            log_factory.created(serial=1, nonce=1, timestamp="1"),
            log_factory.completed(serial=1, nonce=2, timestamp="2"),
            log_factory.created(serial=2, nonce=3, timestamp="3"),
            log_factory.created(serial=1, nonce=4, timestamp="4"),
        ]
    )
    indexer = _indexer(mirror, settings, checkpoint_repo, cache_repo)

    result = await indexer.run(contract)

    assert _rows(cache_repo) == [(2, 3, False, False), (1, 4, False, False)]
    assert result.trades_written == 1
    assert result.trades_skipped_by_nonce == 1
    assert await checkpoint_repo.load(contract, environment) == "4"
