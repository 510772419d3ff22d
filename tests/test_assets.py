from __future__ import annotations

import asyncio
import json
import logging

import grpc
import pytest

from assetbridge import metrics
from assetbridge.assets import OPERATIONS, AssetService
from assetbridge.errors import DispatchCause, DispatchFailed
from assetbridge.ledger.dispatcher import Mode, TransactionDispatcher
from assetbridge.testing.fake_ledger import FakeContract


def _service(**kw):
    fake = FakeContract(**kw)
    return AssetService(TransactionDispatcher(fake)), fake


def test_operation_table_modes() -> None:
    evaluates = {n for n, op in OPERATIONS.items() if op.mode is Mode.EVALUATE}
    submits = {n for n, op in OPERATIONS.items() if op.mode is Mode.SUBMIT}
    assert evaluates == {"GetAllAssets", "SearchAssetByID", "GetAssetHistory", "AssetExists"}
    assert submits == {"CreateAsset", "TransferAsset", "UpdateAssetPrice", "InitLedger"}
    assert OPERATIONS["CreateAsset"].params == ("id", "type", "price", "owner")


def test_empty_ledger_lists_nothing() -> None:
    svc, _ = _service()
    assert asyncio.run(svc.get_all_assets()) == []


def test_create_then_search_then_transfer() -> None:
    svc, fake = _service()

    async def _run():
        await svc.create_asset("A1", "widget", 100, "alice")
        created = await svc.search_asset_by_id("A1")
        await svc.transfer_asset("A1", "bob")
        moved = await svc.search_asset_by_id("A1")
        return created, moved

    created, moved = asyncio.run(_run())
    assert created == {"ID": "A1", "Type": "widget", "Price": 100, "Owner": "alice"}
    assert moved["Owner"] == "bob"
    assert fake.calls[0] == ("submit", "CreateAsset", ("A1", "widget", "100", "alice"))


def test_price_update_shows_in_history() -> None:
    svc, _ = _service()

    async def _run():
        await svc.create_asset("A1", "widget", "100", "alice")
        await svc.update_asset_price("A1", 150.0)
        return await svc.search_asset_by_id("A1"), await svc.get_asset_history("A1")

    asset, history = asyncio.run(_run())
    assert asset["Price"] == 150
    assert [h["record"]["Price"] for h in history] == [150, 100]
    assert all(h["txId"] and h["isDelete"] is False for h in history)


def test_get_all_assets_is_read_only() -> None:
    svc, fake = _service()

    async def _run():
        await svc.init_ledger()
        before = fake.world_state()
        first = await svc.get_all_assets()
        second = await svc.get_all_assets()
        return before, first, second

    before, first, second = asyncio.run(_run())
    assert first == second
    assert [a["ID"] for a in first] == ["asset1", "asset2", "asset3"]
    assert fake.world_state() == before


def test_asset_exists() -> None:
    svc, _ = _service()

    async def _run():
        missing = await svc.asset_exists("A1")
        await svc.create_asset("A1", "widget", 1, "alice")
        return missing, await svc.asset_exists("A1")

    assert asyncio.run(_run()) == (False, True)


def test_duplicate_create_is_rejected() -> None:
    svc, _ = _service()

    async def _run():
        await svc.create_asset("A1", "widget", 1, "alice")
        await svc.create_asset("A1", "widget", 2, "bob")

    with pytest.raises(DispatchFailed) as ei:
        asyncio.run(_run())
    assert ei.value.cause is DispatchCause.REJECTED
    assert ei.value.operation == "CreateAsset"
    assert "already exists" in ei.value.message


def test_unknown_asset_is_rejected() -> None:
    svc, _ = _service()
    with pytest.raises(DispatchFailed) as ei:
        asyncio.run(svc.search_asset_by_id("nope"))
    assert ei.value.cause is DispatchCause.REJECTED
    assert "does not exist" in ei.value.message


def test_ledger_failure_then_valid_request() -> None:
    svc, fake = _service()
    fake.fail_next(grpc.StatusCode.UNAVAILABLE, "peer down")

    async def _run():
        with pytest.raises(DispatchFailed) as ei:
            await svc.get_all_assets()
        assert ei.value.cause is DispatchCause.UNAVAILABLE
        await svc.create_asset("A1", "widget", 5, "alice")
        return await svc.get_all_assets()

    assert [a["ID"] for a in asyncio.run(_run())] == ["A1"]


def test_wrong_arity_and_unknown_operation() -> None:
    svc, fake = _service()
    with pytest.raises(DispatchFailed) as ei:
        asyncio.run(svc.call("TransferAsset", "A1"))
    assert ei.value.cause is DispatchCause.INVALID_ARGUMENT

    with pytest.raises(DispatchFailed) as ei:
        asyncio.run(svc.call("DeleteAsset", "A1"))
    assert ei.value.cause is DispatchCause.INVALID_ARGUMENT
    assert fake.calls == []


def test_fractional_price_never_reaches_the_ledger() -> None:
    svc, fake = _service()
    with pytest.raises(ValueError):
        asyncio.run(svc.create_asset("A1", "widget", 1.5, "alice"))
    assert fake.calls == []


def test_refused_calls_are_logged_and_counted(caplog: pytest.LogCaptureFixture) -> None:
    svc, _ = _service()
    metrics.reset()
    with caplog.at_level(logging.ERROR, logger="assetbridge.dispatch"):
        with pytest.raises(DispatchFailed):
            asyncio.run(svc.call("TransferAsset", "A1"))
        with pytest.raises(DispatchFailed):
            asyncio.run(svc.call("DeleteAsset", "A1"))

    events = [json.loads(r.getMessage()) for r in caplog.records if r.name == "assetbridge.dispatch"]
    assert [(e["event"], e["operation"], e["mode"], e["cause"]) for e in events] == [
        ("dispatch_failed", "TransferAsset", "submit", "invalid_argument"),
        ("dispatch_failed", "DeleteAsset", "unknown", "invalid_argument"),
    ]

    counters = metrics.snapshot()["counters"]
    assert counters["dispatch_submit_TransferAsset_invalid_argument"] == 1
    assert counters["dispatch_unknown_DeleteAsset_invalid_argument"] == 1
    metrics.reset()
