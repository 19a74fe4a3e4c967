"""Unit tests for live slip filtering against a fake store."""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.config import settings
from app.services.slip_service import filter_live, probe


@pytest.fixture(autouse=True)
def fast_probes(monkeypatch):
    monkeypatch.setattr(settings, "SLIP_PROBE_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(settings, "SLIP_PROBE_RETRY_ATTEMPTS", 2)
    monkeypatch.setattr(settings, "STORE_RETRY_DELAY_SECONDS", 0)


def _slips(*refs):
    payment_id = uuid4()
    return [SimpleNamespace(id=uuid4(), payment_id=payment_id, slip_url=ref) for ref in refs]


@pytest.mark.asyncio
async def test_only_present_artifacts_are_live(blob_store):
    blob_store.present = {"a.jpg", "c.jpg"}
    slips = _slips("a.jpg", "b.jpg", "c.jpg")
    live = await filter_live(slips, blob_store)
    assert [s.slip_url for s in live] == ["a.jpg", "c.jpg"]


@pytest.mark.asyncio
async def test_failing_probe_degrades_to_absent(blob_store):
    blob_store.present = {"ok.jpg", "flaky.jpg"}
    blob_store.broken = {"flaky.jpg"}
    live = await filter_live(_slips("ok.jpg", "flaky.jpg"), blob_store)
    assert [s.slip_url for s in live] == ["ok.jpg"]
    # retried a bounded number of times
    assert blob_store.calls.count("flaky.jpg") == 2


@pytest.mark.asyncio
async def test_hanging_probe_times_out(blob_store):
    blob_store.present = {"ok.jpg", "hang.jpg"}
    blob_store.slow = {"hang.jpg"}
    live = await filter_live(_slips("ok.jpg", "hang.jpg"), blob_store)
    assert [s.slip_url for s in live] == ["ok.jpg"]


@pytest.mark.asyncio
async def test_fan_out_is_bounded(blob_store):
    refs = [f"{i}.jpg" for i in range(10)]
    blob_store.present = set(refs)
    live = await filter_live(_slips(*refs), blob_store, concurrency=3)
    assert len(live) == 10
    assert blob_store.max_in_flight <= 3


@pytest.mark.asyncio
async def test_unexpected_store_error_is_absent():
    class Exploding:
        async def exists(self, ref):
            raise RuntimeError("bug")

    assert await probe(Exploding(), "x.jpg") is False


@pytest.mark.asyncio
async def test_no_slips_no_probes(blob_store):
    assert await filter_live([], blob_store) == []
    assert blob_store.calls == []
