"""Tests for delegator ranking: pure helpers and RankingService over the fixture snapshot."""

from __future__ import annotations

from decimal import Decimal

import pytest

from oxt_api.services.ranking_service import (
    TOTALS_KEY,
    percent_of_total,
    percentile,
    sort_totals,
    summarize,
    tie_aware_rank,
)
from oxt_api.utils.pagination import build_links, paginate
from tests.conftest import D1, D2, D3, D4, NOBODY, V1, V2, make_context

WEI = 10**18


class TestHelpers:
    def test_sort_is_descending_and_stable(self):
        totals = {"a": 5, "b": 9, "c": 5, "d": 1}
        assert [k for k, _ in sort_totals(totals)] == ["b", "a", "c", "d"]

    def test_tied_delegators_share_rank(self):
        totals = {"a": 10, "b": 10, "c": 3}
        assert tie_aware_rank(totals, "a") == 1
        assert tie_aware_rank(totals, "b") == 1
        assert tie_aware_rank(totals, "c") == 3

    def test_zero_or_missing_stake_is_unranked(self):
        totals = {"a": 10, "z": 0}
        assert tie_aware_rank(totals, "z") is None
        assert tie_aware_rank(totals, "missing") is None

    def test_percentile(self):
        assert percentile(1, 4) == Decimal("100.00")
        assert percentile(4, 4) == Decimal("25.00")
        assert percentile(1, 0) == 0

    def test_percent_of_zero_total(self):
        assert percent_of_total(0, 0) == Decimal("0.00")

    def test_percent_of_total_four_places(self):
        assert percent_of_total(1, 3) == Decimal("33.3333")

    def test_paginate(self):
        p = paginate(total_items=45, page=2, limit=20)
        assert p.total_pages == 3
        assert p.has_next and p.has_prev

    def test_paginate_empty(self):
        p = paginate(total_items=0, page=1, limit=20)
        assert p.total_pages == 0
        assert not p.has_next and not p.has_prev

    def test_links_for_middle_page(self):
        links = build_links("/v1/x", paginate(total_items=45, page=2, limit=20))
        assert links == {
            "self": "/v1/x?page=2&limit=20",
            "next": "/v1/x?page=3&limit=20",
            "prev": "/v1/x?page=1&limit=20",
        }

    def test_summary_uses_integer_average(self):
        s = summarize({"a": 3 * WEI, "b": 4 * WEI, "c": 1})
        assert s.total_delegators == 3
        assert s.average_stake == Decimal((7 * WEI + 1) // 3) / WEI

    def test_summary_empty(self):
        s = summarize({})
        assert s.total_delegators == 0
        assert s.average_stake == 0


class TestRankingService:
    @pytest.mark.asyncio
    async def test_totals_sum_positions_across_validators(self, ctx):
        totals = await ctx.ranking.compute_all_totals()
        assert not totals.degraded
        assert totals.value == {
            D1: 70_000 * WEI,
            D2: 40_000 * WEI,
            D3: 42_000 * WEI,
            D4: 500 * WEI,
        }

    @pytest.mark.asyncio
    async def test_totals_are_memoized(self, ctx, source):
        await ctx.ranking.compute_all_totals()
        reads = source.calls["get_staking_info"]
        await ctx.ranking.compute_all_totals()
        assert source.calls["get_staking_info"] == reads
        assert ctx.registry.get_store("ranking").get(TOTALS_KEY) is not None

    @pytest.mark.asyncio
    async def test_first_page(self, ctx):
        result = await ctx.ranking.rank(page=1, limit=2)
        page = result.value
        assert [e.delegator_address for e in page.entries] == [D1, D3]
        assert [e.rank for e in page.entries] == [1, 2]
        assert page.entries[0].total_stake == Decimal("70000")
        assert page.entries[0].percent_of_total == Decimal("45.9016")
        assert page.pagination.total_pages == 2
        assert page.pagination.has_next
        assert page.summary.total_delegators == 4
        assert page.summary.total_staked == Decimal("152500")
        assert page.summary.average_stake == Decimal("38125")

    @pytest.mark.asyncio
    async def test_second_page_continues_ranks(self, ctx):
        page = (await ctx.ranking.rank(page=2, limit=2)).value
        assert [e.delegator_address for e in page.entries] == [D2, D4]
        assert [e.rank for e in page.entries] == [3, 4]
        assert not page.pagination.has_next

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, ctx):
        page = (await ctx.ranking.rank(page=10, limit=2)).value
        assert page.entries == []
        assert page.summary.total_delegators == 4

    @pytest.mark.asyncio
    async def test_rank_of(self, ctx):
        result = await ctx.ranking.rank_of(D1)
        rank = result.value
        assert rank.rank == 1
        assert rank.total_stake == Decimal("70000")
        assert rank.percentile == Decimal("100.00")
        assert [b.validator for b in rank.validator_breakdown] == [V1, V2]
        assert rank.validator_breakdown[0].stake == Decimal("60000")

    @pytest.mark.asyncio
    async def test_rank_of_ignores_address_case(self, ctx):
        rank = (await ctx.ranking.rank_of(D2.upper().replace("0X", "0x"))).value
        assert rank.rank == 3
        assert rank.percentile == Decimal("50.00")

    @pytest.mark.asyncio
    async def test_rank_of_unknown_delegator(self, ctx):
        rank = (await ctx.ranking.rank_of(NOBODY)).value
        assert rank.rank is None
        assert rank.total_delegators == 4
        assert rank.message

    @pytest.mark.asyncio
    async def test_top(self, ctx):
        page = (await ctx.ranking.top(3)).value
        assert [e.rank for e in page.entries] == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_degraded_totals_are_not_memoized(self):
        ctx = make_context(fail={"get_staking_info"})
        result = await ctx.ranking.compute_all_totals()
        assert result.degraded
        assert result.value == {}
        assert ctx.registry.get_store("ranking").get(TOTALS_KEY) is None

        page = await ctx.ranking.rank(1, 10)
        assert page.degraded
        assert page.value.entries == []
