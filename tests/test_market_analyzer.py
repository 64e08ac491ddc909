"""Tests for src.auction_engine.market_analyzer."""

from dataclasses import replace

import pytest

from src.auction_engine.market_analyzer import (
    analyze_market,
    calculate_fair_value,
    calculate_position_scarcity,
    get_market_summary,
    get_position_advice,
    positional_scarcity_scores,
)
from src.auction_engine.models import (
    PlayerValuation,
    PositionalNeed,
    PositionScarcityAnalysis,
    TeamCapSituation,
)


# ── Helpers ──────────────────────────────────────────────────────────


def _make_player(pid="p1", position="QB", **overrides):
    defaults = {
        "player_id": pid,
        "name": f"Player {pid}",
        "position": position,
        "age": 27,
    }
    defaults.update(overrides)
    return PlayerValuation(**defaults)


def _make_team(fid="0001", gaps=None, discretionary=10_000_000):
    gaps = gaps or {}
    needs = [
        PositionalNeed(position=pos, priority="medium" if gap else "low", current_depth=0, gap=gap)
        for pos, gap in gaps.items()
    ]
    return TeamCapSituation(
        franchise_id=fid,
        team_name=f"Team {fid}",
        hard_cap=45_000_000,
        committed_salaries=0,
        dead_money=0,
        franchise_tag_commitment=0,
        total_committed=0,
        projected_cap_space=discretionary,
        minimum_roster_reserve=0,
        discretionary_spending=discretionary,
        roster_count=20,
        positional_needs=needs,
    )


def _scarcity(position, index=1.0, inflation=0.0):
    return PositionScarcityAnalysis(
        position=position,
        available_players=1,
        quality_players=1,
        teams_needing=1,
        total_demand=1,
        scarcity_index=index,
        projected_price_inflation=inflation,
        price_impact_multiplier=1 + inflation,
    )


# ── Scarcity ─────────────────────────────────────────────────────────


class TestPositionScarcity:
    def test_high_demand_clamped_inflation(self):
        free_agents = [_make_player(dynasty_rank=10)]
        teams = [_make_team(f"000{i}", {"QB": 1}) for i in range(5)]

        qb = calculate_position_scarcity(free_agents, teams)["QB"]

        assert qb.quality_players == 1
        assert qb.total_demand == 5
        assert qb.teams_needing == 5
        assert qb.scarcity_index == pytest.approx(5.0)
        assert qb.projected_price_inflation == pytest.approx(0.5)
        assert qb.price_impact_multiplier == pytest.approx(1.5)

    def test_oversupplied_position_deflates(self):
        free_agents = [_make_player(f"wr{i}", "WR", dynasty_rank=20 + i) for i in range(4)]
        teams = [_make_team("0001", {"WR": 1}), _make_team("0002", {"WR": 0})]

        wr = calculate_position_scarcity(free_agents, teams)["WR"]

        assert wr.scarcity_index == pytest.approx(0.25)
        assert wr.teams_needing == 1
        assert wr.projected_price_inflation == pytest.approx(-0.1875)
        assert wr.price_impact_multiplier == pytest.approx(0.8125)

    def test_balanced_position_is_neutral(self):
        free_agents = [_make_player("te1", "TE", redraft_rank=40)]
        te = calculate_position_scarcity(free_agents, [_make_team(gaps={"TE": 1})])["TE"]
        assert te.scarcity_index == pytest.approx(1.0)
        assert te.price_impact_multiplier == pytest.approx(1.0)

    def test_quality_threshold_inclusive(self):
        free_agents = [
            _make_player("a", dynasty_rank=100),
            _make_player("b", dynasty_rank=101),
            _make_player("c"),
        ]
        qb = calculate_position_scarcity(free_agents, [])["QB"]
        assert qb.available_players == 3
        assert qb.quality_players == 1

    def test_inflation_floor(self):
        free_agents = [_make_player(f"q{i}", dynasty_rank=i + 1) for i in range(10)]
        qb = calculate_position_scarcity(free_agents, [])["QB"]
        assert qb.projected_price_inflation >= -0.5

    def test_every_position_present(self, rules):
        result = calculate_position_scarcity([], [])
        assert set(result) == set(rules.positions)


class TestScarcityScores:
    def test_scores(self):
        scores = positional_scarcity_scores(
            {
                "QB": PositionScarcityAnalysis("QB", 1, 1, 5, 5, 5.0, 0.5, 1.5),
                "WR": PositionScarcityAnalysis("WR", 5, 5, 1, 1, 0.2, -0.2, 0.8),
            }
        )
        assert scores["QB"] == pytest.approx(0.8)
        assert scores["WR"] == 0.0

    def test_bounded(self):
        scores = positional_scarcity_scores(
            {"TE": PositionScarcityAnalysis("TE", 0, 0, 3, 3, 3.0, 0.5, 1.5)}
        )
        assert 0.0 <= scores["TE"] <= 1.0


# ── Fair value ───────────────────────────────────────────────────────


class TestFairValue:
    @pytest.mark.parametrize(
        "overrides, expected",
        [
            ({}, 1_000_000),
            ({"age": 23}, 1_300_000),
            ({"dynasty_rank": 10}, 1_300_000),
            ({"age": 23, "dynasty_rank": 10}, 1_690_000),
            ({"age": 33}, 750_000),
            ({"age": 30}, 850_000),
        ],
    )
    def test_modifiers(self, overrides, expected):
        player = _make_player(**overrides)
        assert calculate_fair_value(player, 1_000_000) == pytest.approx(expected)

    def test_price_taken_as_is(self):
        # Scarcity is already inside the estimated price
        assert calculate_fair_value(_make_player(dynasty_rank=60), 2_000_000) == 2_000_000


# ── Market analysis ──────────────────────────────────────────────────


class TestAnalyzeMarket:
    def test_seller_market(self):
        free_agents = [_make_player(estimated_price=12_000_000)]
        analysis = analyze_market(free_agents, [_make_team(discretionary=10_000_000)])
        assert analysis.market_efficiency == pytest.approx(1.2)
        assert analysis.market_condition == "seller"
        assert analysis.expected_average_price_change == pytest.approx(0.10)

    def test_buyer_market(self):
        free_agents = [_make_player(estimated_price=8_000_000)]
        analysis = analyze_market(free_agents, [_make_team(discretionary=10_000_000)])
        assert analysis.market_condition == "buyer"
        assert analysis.expected_average_price_change == pytest.approx(-0.10)

    def test_balanced_market(self):
        free_agents = [_make_player(estimated_price=10_000_000)]
        analysis = analyze_market(free_agents, [_make_team(discretionary=10_000_000)])
        assert analysis.market_condition == "balanced"
        assert analysis.expected_average_price_change == 0.0

    def test_no_cap_space_is_balanced(self):
        free_agents = [_make_player(estimated_price=5_000_000)]
        analysis = analyze_market(free_agents, [_make_team(discretionary=0)])
        assert analysis.total_available_cap == 0
        assert analysis.market_efficiency == 1.0
        assert analysis.market_condition == "balanced"

    def test_total_cap_sums_teams(self):
        teams = [_make_team("0001", discretionary=4_000_000), _make_team("0002", discretionary=6_000_000)]
        analysis = analyze_market([], teams)
        assert analysis.total_available_cap == 10_000_000
        assert analysis.total_available_players == 0

    def test_unpriced_players_count_at_league_minimum(self):
        free_agents = [_make_player("a"), _make_player("b", estimated_price=1_000_000)]
        analysis = analyze_market(free_agents, [_make_team(discretionary=10_000_000)])
        qb = analysis.positional_markets["QB"]
        assert qb.available_players == 2
        assert qb.top_player_value == 1_000_000
        assert qb.average_player_value == pytest.approx((425_000 + 1_000_000) / 2)

    def test_positional_markets_cover_every_position(self, rules):
        analysis = analyze_market([_make_player(estimated_price=1_000_000)], [_make_team()])
        assert set(analysis.positional_markets) == set(rules.positions)
        assert analysis.positional_markets["RB"].available_players == 0
        assert analysis.positional_markets["RB"].top_player_value == 0

    def test_uses_supplied_scarcity(self):
        free_agents = [_make_player(estimated_price=1_000_000)]
        scarcity = {"QB": _scarcity("QB", 3.0, 0.5)}
        analysis = analyze_market(free_agents, [_make_team()], scarcity)
        assert analysis.positional_markets["QB"].scarcity_index == 3.0
        assert analysis.positional_markets["QB"].projected_price_inflation == 0.5

    def test_value_opportunity(self):
        young_star = _make_player("star", age=23, dynasty_rank=10, estimated_price=1_000_000)
        analysis = analyze_market([young_star], [_make_team()], {})

        assert len(analysis.value_opportunities) == 1
        opp = analysis.value_opportunities[0]
        assert opp.player.player_id == "star"
        assert opp.fair_value == 1_690_000
        assert opp.expected_discount == pytest.approx(1 - 1 / 1.69)
        assert "young" in opp.reason
        assert "elite rank #10" in opp.reason

    def test_overvalued_risk(self):
        veteran = _make_player("vet", age=33, estimated_price=1_000_000)
        analysis = analyze_market([veteran], [_make_team()], {"QB": _scarcity("QB", 0.5, 0.0)})

        assert len(analysis.overvalued_risks) == 1
        risk = analysis.overvalued_risks[0]
        assert risk.fair_value == 750_000
        assert risk.expected_premium == pytest.approx(1 / 3)
        assert "Age 33 decline risk" in risk.reason
        assert "QB market oversupplied" in risk.reason

    def test_fairly_priced_player_in_neither_list(self):
        analysis = analyze_market(
            [_make_player(estimated_price=1_000_000)], [_make_team()], {}
        )
        assert analysis.value_opportunities == []
        assert analysis.overvalued_risks == []

    def test_plain_player_at_scarce_position_in_neither_list(self):
        free_agents = [_make_player("qb", dynasty_rank=60, estimated_price=22_500_000)]
        teams = [_make_team(f"000{i}", {"QB": 1}) for i in range(5)]

        analysis = analyze_market(free_agents, teams)

        assert analysis.positional_markets["QB"].projected_price_inflation == pytest.approx(0.5)
        assert analysis.value_opportunities == []
        assert analysis.overvalued_risks == []

    def test_plain_player_at_oversupplied_position_in_neither_list(self):
        free_agents = [
            _make_player(f"wr{i}", "WR", dynasty_rank=60 + i, estimated_price=4_000_000)
            for i in range(4)
        ]
        analysis = analyze_market(free_agents, [_make_team(gaps={"WR": 1})])

        assert analysis.positional_markets["WR"].projected_price_inflation < 0
        assert analysis.overvalued_risks == []

    def test_opportunities_sorted_by_discount(self):
        free_agents = [
            _make_player("young", age=23, estimated_price=1_000_000),
            _make_player("young_star", age=22, dynasty_rank=5, estimated_price=1_000_000),
        ]
        analysis = analyze_market(free_agents, [_make_team()], {})
        assert [o.player.player_id for o in analysis.value_opportunities] == [
            "young_star", "young",
        ]


    def test_listings_capped(self, rules):
        free_agents = [
            _make_player(f"y{i}", age=22, estimated_price=1_000_000 + i) for i in range(12)
        ]
        analysis = analyze_market(free_agents, [_make_team()], {})
        assert len(analysis.value_opportunities) == rules.max_market_listings == 10

        narrow = analyze_market(
            free_agents, [_make_team()], {}, replace(rules, max_market_listings=3)
        )
        assert [o.player.player_id for o in narrow.value_opportunities] == ["y0", "y1", "y2"]


# ── Summaries ────────────────────────────────────────────────────────


class TestMarketSummary:
    def test_seller_summary(self):
        free_agents = [_make_player(estimated_price=12_000_000)]
        analysis = analyze_market(free_agents, [_make_team(discretionary=10_000_000)])
        summary = get_market_summary(analysis)
        assert summary.startswith("Seller's market: 1 free agents, $10.0M available")
        assert "(efficiency 1.20)" in summary

    def test_high_demand_positions_listed(self):
        free_agents = [_make_player(estimated_price=1_000_000)]
        analysis = analyze_market(
            free_agents, [_make_team()], {"QB": _scarcity("QB", 3.0, 0.5)}
        )
        assert "high demand for QB" in get_market_summary(analysis)


class TestPositionAdvice:
    @pytest.mark.parametrize(
        "index, advice",
        [
            (2.5, "Severe shortage - expect to overpay"),
            (2.0, "Severe shortage - expect to overpay"),
            (1.5, "Competitive - bid aggressively early"),
            (1.0, "Balanced - fair prices expected"),
            (0.5, "Buyer's market - wait for deals"),
        ],
    )
    def test_thresholds(self, index, advice):
        analysis = analyze_market([], [_make_team()], {"WR": _scarcity("WR", index)})
        assert get_position_advice("WR", analysis) == advice

    def test_unknown_position(self):
        analysis = analyze_market([], [_make_team()])
        assert get_position_advice("LB", analysis) == "No data"
