"""
Tests for terminal formatters and the budget brief.

What we test
------------
1. Value helpers (counts, money, percentages, N/A).
2. Each formatter renders its headline numbers.
3. Brief: per-lever impacts, recommendation rules, section content.
"""

from __future__ import annotations

import pytest

from cityspark.config import SimulationConfig
from cityspark.forecast.engine import baseline_trajectory, forecast
from cityspark.models.district import TimeSeriesPoint
from cityspark.models.simulation import LeverAllocation
from cityspark.reporting.brief import (
    build_brief,
    build_recommendations,
    format_brief,
    lever_impacts,
)
from cityspark.reporting.formatters import (
    format_count,
    format_dashboard,
    format_district_analysis,
    format_forecast_table,
    format_money,
    format_pct,
    format_ranking_table,
    format_simulation_summary,
)
from cityspark.simulation.engine import simulate

LINEAR = [TimeSeriesPoint(year=2020 + i, value=1000.0 + 100.0 * i) for i in range(6)]


@pytest.fixture
def linear_forecast():
    return forecast(LINEAR, horizon=5)


@pytest.fixture
def balanced_simulation(linear_forecast, balanced_allocation):
    return simulate(baseline_trajectory(linear_forecast.points), balanced_allocation, 50_000_000)


# ── Value helpers ─────────────────────────────────────────────────────────────

def test_value_helpers() -> None:
    assert format_count(72400.4) == "72,400"
    assert format_count(None) == "N/A"
    assert format_money(12_500_000) == "$12.5M"
    assert format_money(950) == "$950"
    assert format_pct(17.654) == "17.7%"
    assert format_pct(3.0, signed=True) == "+3.0%"
    assert format_pct(None) == "N/A"


# ── Formatters ────────────────────────────────────────────────────────────────

def test_ranking_table_truncates(service) -> None:
    text = format_ranking_table(service.rank_districts(), top_n=2)
    assert "District A" in text
    assert "District E" not in text
    assert "showing 2 of 6" in text


def test_ranking_table_empty() -> None:
    assert "no districts loaded" in format_ranking_table([])


def test_district_analysis_text(service) -> None:
    text = format_district_analysis(service.district_analysis("b"))
    assert "District B (b)" in text
    assert "Rank:             3 of 6" in text
    assert "r = " in text


def test_forecast_table_text(linear_forecast) -> None:
    text = format_forecast_table(linear_forecast, series_id="national")
    assert "ARIMA(0,1,0)" in text
    assert "1,600" in text
    assert "walk_forward" in text


def test_simulation_summary_text(balanced_simulation) -> None:
    text = format_simulation_summary(balanced_simulation)
    assert "17.6%" in text or "17.7%" in text
    assert "$20.0M" in text
    assert "Job Creation Programs" in text


def test_dashboard_text(service) -> None:
    text = format_dashboard(service.dashboard_summary(n=3))
    assert "National Dashboard" in text
    assert "Projected migration 2030" in text


# ── Brief ─────────────────────────────────────────────────────────────────────

def test_lever_impacts_balanced(balanced_simulation) -> None:
    impacts = lever_impacts(balanced_simulation)
    assert [i.impact_pp for i in impacts] == pytest.approx([10.0, 3.75, 2.4, 1.5])
    assert impacts[0].impact_low_pp == pytest.approx(10.0 - 4.5 * 0.40)
    assert impacts[0].impact_high_pp == pytest.approx(10.0 + 4.5 * 0.40)


def test_recommendations_priority_and_fixed_lines(
    service, linear_forecast, balanced_simulation
) -> None:
    district = service.score_district("b")
    recs = build_recommendations(district, linear_forecast, balanced_simulation)
    assert recs[0].endswith("(40% budget allocation)")
    assert recs[0].startswith("Prioritise job creation")
    assert recs[-2].startswith("Establish a quarterly monitoring")
    assert recs[-1].startswith("Conduct a mid-term evaluation")
    assert not any("Fast-track" in r for r in recs)


def test_recommendations_high_risk_and_capped(service, linear_forecast) -> None:
    district = service.score_district("a")
    simulation = simulate(
        baseline_trajectory(linear_forecast.points), LeverAllocation(jobs=100), 1_000_000
    )
    recs = build_recommendations(district, linear_forecast, simulation, SimulationConfig())
    assert any(r.startswith("Fast-track implementation") for r in recs)
    assert any("capped at the 22.0% envelope" in r for r in recs)


def test_recommendations_in_sample_caveat(service, balanced_allocation) -> None:
    short = forecast(LINEAR[:4], horizon=3)
    simulation = simulate(baseline_trajectory(short.points), balanced_allocation, 1_000_000)
    recs = build_recommendations(service.score_district("c"), short, simulation)
    assert any("in-sample only" in r for r in recs)


def test_build_brief_sections(service, linear_forecast, balanced_simulation) -> None:
    brief = build_brief(
        service.score_district("b"),
        linear_forecast,
        balanced_simulation,
        total_budget=50_000_000,
        current_migration=1500.0,
        correlation=0.97,
    )
    assert brief.title == "Policy Intervention Brief: District B"
    assert "5 years (2026-2030)" in brief.executive_summary
    assert dict(brief.baseline_assessment)["Current migration"] == "1,500 people/year"
    assert dict(brief.statistical_validation)["Correlation strength"] == "r = 0.97"
    assert len(brief.levers) == 4
    assert brief.to_dict()["district_id"] == "b"

    text = format_brief(brief)
    assert "Executive Summary" in text
    assert "Policy Recommendations" in text
    assert "$50.0M" in text
