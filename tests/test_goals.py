from datetime import date

import pytest

from advice.goals import analyze_goals, goals_summary, overall_alignment
from core.schema import Goal


def test_reachable_goal_is_feasible(builder):
    projection = builder.build_for_client("c-2")
    [analysis] = analyze_goals(builder.load_client("c-2").goals, projection)
    assert analysis.gap <= 0
    assert analysis.feasible
    assert analysis.projected_value == projection.point_at(2030, 1).projected_value


def test_large_goal_is_infeasible(builder):
    projection = builder.build_for_client("c-1")
    [analysis] = analyze_goals(builder.load_client("c-1").goals, projection)
    assert not analysis.feasible
    assert analysis.gap > 0
    assert analysis.gap == pytest.approx(2_000_000.0 - analysis.projected_value)


def test_goal_outside_projection_uses_final_value(builder):
    projection = builder.build_for_client("c-2")
    goal = Goal(id="late", type="Legacy", amount=1.0, target_at=date(2075, 1, 1))
    [analysis] = analyze_goals([goal], projection)
    assert analysis.projected_value == projection.final_value


def test_feasible_iff_gap_not_positive(builder):
    projection = builder.build_for_client("c-2")
    target = projection.point_at(2030, 1).projected_value
    goals = [
        Goal(id="exact", type="a", amount=target, target_at=date(2030, 1, 1)),
        Goal(id="over", type="b", amount=target + 0.01, target_at=date(2030, 1, 1)),
    ]
    exact, over = analyze_goals(goals, projection)
    assert exact.gap == 0 and exact.feasible
    assert over.gap > 0 and not over.feasible


def test_overall_alignment(builder):
    assert overall_alignment([]) == 100
    projection = builder.build_for_client("c-2")
    goals = [
        Goal(id="small", type="a", amount=1.0, target_at=date(2030, 1, 1)),
        Goal(id="huge", type="b", amount=1e12, target_at=date(2030, 1, 1)),
        Goal(id="huge2", type="c", amount=1e12, target_at=date(2030, 1, 1)),
    ]
    assert overall_alignment(analyze_goals(goals, projection)) == 33
    assert overall_alignment(analyze_goals(goals[:2], projection)) == 50


def test_goals_summary_counts_shortfall_only(builder):
    projection = builder.build_for_client("c-2")
    goals = [
        Goal(id="small", type="a", amount=1.0, target_at=date(2030, 1, 1)),
        Goal(id="huge", type="b", amount=1e9, target_at=date(2030, 1, 1)),
    ]
    analyses = analyze_goals(goals, projection)
    summary = goals_summary(analyses)
    assert summary["total"] == 2
    assert summary["feasible"] == 1
    assert summary["total_gap"] == pytest.approx(analyses[1].gap)
