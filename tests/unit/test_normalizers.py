"""Tests for subgraph parsing and record normalization."""

from decimal import Decimal

from hexstats.services.data.normalizers import (
    global_info_from_graph,
    stake_end_from_graph,
    stake_start_from_graph,
    stake_starts_from_graph,
)
from hexstats.services.data.records import Network
from hexstats.services.data.response_models import (
    parse_big_decimal,
    parse_big_int,
    parse_stake_id,
)


class TestParsers:
    """Lenient BigInt and BigDecimal parsing."""

    def test_big_int_from_string(self):
        assert parse_big_int("123456789012345678901234") == 123456789012345678901234

    def test_big_int_defaults_to_zero(self):
        assert parse_big_int(None) == 0
        assert parse_big_int("") == 0
        assert parse_big_int("not a number") == 0

    def test_stake_id(self):
        assert parse_stake_id("42") == 42
        assert parse_stake_id(None) is None
        assert parse_stake_id("") is None
        assert parse_stake_id("abc") is None

    def test_big_decimal(self):
        assert parse_big_decimal("1.25") == Decimal("1.25")
        assert parse_big_decimal(None) == Decimal("0")


class TestStakeStartFromGraph:
    """Mapping subgraph stakeStarts entities."""

    def test_full_record(self):
        raw = {
            "id": "0xabc-1",
            "stakeId": "1001",
            "stakerAddr": "0xABCDEF0000000000000000000000000000000001",
            "stakedHearts": "250000000000",
            "stakeShares": "300000000000",
            "stakeTShares": "3.5",
            "stakedDays": "5555",
            "startDay": "100",
            "endDay": "5655",
            "timestamp": "1600000000",
            "isAutoStake": False,
            "transactionHash": "0xdead",
            "blockNumber": "12345",
        }

        start = stake_start_from_graph(raw, Network.PULSECHAIN)

        assert start.stake_id == 1001
        assert start.staker_addr == "0xabcdef0000000000000000000000000000000001"
        assert start.staked_hearts == 250_000_000_000
        assert start.stake_t_shares == Decimal("3.5")
        assert start.staked_days == 5555
        assert start.end_day == 5655
        assert start.network is Network.PULSECHAIN

    def test_missing_fields_default(self):
        start = stake_start_from_graph({"stakeId": "7", "startDay": "10"}, Network.ETHEREUM)

        assert start.staked_hearts == 0
        assert start.staked_days == 1
        assert start.end_day == 11
        assert start.stake_t_shares == Decimal("0")
        assert start.staker_addr == ""

    def test_record_without_id_is_dropped(self):
        assert stake_start_from_graph({"stakedHearts": "100"}, Network.ETHEREUM) is None

    def test_batch_skips_id_less_records(self):
        raws = [{"stakeId": "1"}, {"stakedHearts": "5"}, {"stakeId": "2"}]

        starts = stake_starts_from_graph(raws, Network.ETHEREUM)

        assert [s.stake_id for s in starts] == [1, 2]


class TestOtherEntities:
    def test_stake_end(self):
        end = stake_end_from_graph(
            {"stakeId": "9", "payout": "500", "penalty": "20", "servedDays": "365"},
            Network.ETHEREUM,
        )
        assert (end.stake_id, end.payout, end.penalty, end.served_days) == (9, 500, 20, 365)

    def test_global_info(self):
        info = global_info_from_graph({"hexDay": "1500", "shareRate": "250000", "id": "x"})
        assert info.hex_day == 1500
        assert info.share_rate == 250000
        assert info.locked_hearts_total == 0

    def test_global_info_missing(self):
        assert global_info_from_graph(None) is None
