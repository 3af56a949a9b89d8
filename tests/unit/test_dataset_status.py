"""Tests for the keyed dataset status map."""

from hexstats.services.data.dataset_status import (
    DatasetKey,
    DatasetKind,
    DatasetStatusMap,
    DataSource,
)
from hexstats.services.data.records import Network


class TestDatasetStatusMap:
    """Generation tracking and status transitions."""

    def test_new_dataset_is_transitioning(self):
        status_map = DatasetStatusMap()
        key = DatasetKey(Network.PULSECHAIN, DatasetKind.OVERVIEW)

        assert status_map.get(key).status is DataSource.TRANSITIONING

    def test_stale_generation_is_rejected(self):
        status_map = DatasetStatusMap()
        key = DatasetKey(Network.ETHEREUM, DatasetKind.STAKE_ENDS)

        old = status_map.begin(key)
        new = status_map.begin(key)

        assert new == old + 1
        assert status_map.mark_success(key, old, DataSource.REMOTE) is False
        assert status_map.mark_error(key, old, "late failure") is False
        assert status_map.get(key).status is DataSource.TRANSITIONING

        assert status_map.mark_success(key, new, DataSource.DATABASE, record_count=12) is True
        state = status_map.get(key)
        assert state.status is DataSource.DATABASE
        assert state.record_count == 12
        assert state.last_updated is not None

    def test_begin_after_error_shows_transitioning(self):
        status_map = DatasetStatusMap()
        key = DatasetKey(Network.ETHEREUM, DatasetKind.GLOBAL_INFO)

        status_map.mark_error(key, status_map.begin(key), "boom")
        assert status_map.get(key).status is DataSource.ERROR

        status_map.begin(key)
        assert status_map.get(key).status is DataSource.TRANSITIONING
        assert status_map.get(key).last_error == "boom"

    def test_begin_keeps_served_status(self):
        status_map = DatasetStatusMap()
        key = DatasetKey(Network.ETHEREUM, DatasetKind.STAKE_STARTS)
        status_map.mark_success(key, status_map.begin(key), DataSource.REMOTE)

        status_map.begin(key)

        assert status_map.get(key).status is DataSource.REMOTE

    def test_keys_with_status_and_snapshot(self):
        status_map = DatasetStatusMap()
        remote = DatasetKey(Network.ETHEREUM, DatasetKind.STAKE_STARTS)
        scoped = DatasetKey(Network.PULSECHAIN, DatasetKind.STAKER_ENDS, scope="0xabc")
        status_map.mark_success(remote, status_map.begin(remote), DataSource.REMOTE)
        status_map.mark_success(scoped, status_map.begin(scoped), DataSource.DATABASE)

        assert status_map.keys_with_status(DataSource.REMOTE) == [remote]

        snapshot = status_map.snapshot()
        assert set(snapshot) == {"ethereum:stake_starts", "pulsechain:staker_ends:0xabc"}
        assert snapshot["ethereum:stake_starts"]["status"] == "remote"

        status_map.clear()
        assert status_map.snapshot() == {}
