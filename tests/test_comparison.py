"""
Multi-persona comparison: isolation, concurrency limit, summary and recommendations.
"""
import asyncio

import pytest

from conftest import HOME, SITE, FakeClock, no_sleep
from journeysim.journey.collaborators import StaticSiteExecutor
from journeysim.journey.comparison import (
    common_friction,
    compare_personas,
    format_comparison_report,
    recommend,
    summarise,
)
from journeysim.journey.policies import ScriptedPolicy
from journeysim.schema import COMPARISON_SCHEMA, RESULT_SCHEMA, validate_comparison, validate_result

GOAL = "Apply for admission"


def _compare(personas, decisions, **kwargs):
    return compare_personas(
        personas, GOAL, HOME,
        executor_factory=lambda name: StaticSiteExecutor(SITE, start_url=HOME),
        reasoner_factory=lambda name: ScriptedPolicy(decisions(name)),
        clock=FakeClock(), sleep=no_sleep, **kwargs,
    )


def _row(persona, success=True, total_time=10.0, friction=(), reason=None,
         tech_level="intermediate", device="desktop", frustration=0.0, backtracks=0):
    return {
        "persona": persona, "success": success, "total_time": total_time,
        "tech_level": tech_level, "device": device,
        "friction_count": len(friction), "friction_points": list(friction),
        "cognitive": {"abandonment_reason": reason, "frustration_level": frustration,
                      "backtrack_count": backtracks},
    }


# ── Running ────────────────────────────────────────────────────────────────────

class TestComparePersonas:
    def test_document_shape(self):
        comparison = _compare(
            ["power-user", "elderly-user"],
            lambda name: [{"action": "click:Apply for admission"}, {"goalAchieved": True}],
        )
        validate_comparison(comparison)
        assert comparison["schema"] == COMPARISON_SCHEMA
        assert [r["persona"] for r in comparison["personas"]] == ["power-user", "elderly-user"]
        assert comparison["summary"]["success_count"] == 2
        assert comparison["summary"]["failure_count"] == 0
        for row in comparison["personas"]:
            assert row["success"]
            assert row["step_count"] == 2
            validate_result(row["journey"])
            assert row["journey"]["schema"] == RESULT_SCHEMA

    def test_personas_get_different_outcomes(self):
        # the same scripted frustration ends only the impatient journey
        comparison = _compare(
            ["impatient-user", "elderly-user"],
            lambda name: [{"newFrustration": 0.75}, {"goalAchieved": True}],
        )
        rows = {r["persona"]: r for r in comparison["personas"]}
        assert rows["impatient-user"]["cognitive"]["abandonment_reason"] == "frustration"
        assert rows["elderly-user"]["success"]
        assert comparison["summary"]["failure_count"] == 1

    def test_trait_overrides(self):
        comparison = _compare(
            [{"name": "elderly-user", "traits": {"patience": 0.1}}, ("elderly-user", None)],
            lambda name: [{"newFrustration": 0.75}, {"goalAchieved": True}],
        )
        first, second = comparison["personas"]
        assert first["cognitive"]["abandonment_reason"] == "frustration"
        assert second["success"]

    def test_failing_journey_becomes_error_row(self):
        comparison = _compare(["astronaut", "power-user"], lambda name: [{"goalAchieved": True}])
        bad, good = comparison["personas"]
        assert "error" in bad
        assert bad["success"] is False
        assert bad["cognitive"]["abandonment_reason"] == "timeout"
        assert "journey" not in bad
        assert good["success"]

    def test_factories_called_per_persona(self):
        seen = []

        def executor_factory(name):
            seen.append(name)
            return StaticSiteExecutor(SITE, start_url=HOME)

        compare_personas(
            ["power-user", "first-timer"], GOAL, HOME, executor_factory,
            lambda name: ScriptedPolicy([{"goalAchieved": True}]),
            clock=FakeClock(), sleep=no_sleep,
        )
        assert sorted(seen) == ["first-timer", "power-user"]

    def test_concurrency_limit(self):
        counter = {"active": 0, "peak": 0}

        class CountingSite(StaticSiteExecutor):
            def open(self, url):
                super().open(url)
                counter["active"] += 1
                counter["peak"] = max(counter["peak"], counter["active"])

            async def perceive(self):
                await asyncio.sleep(0)
                return super().perceive()

            def close(self):
                counter["active"] -= 1

        compare_personas(
            ["power-user", "first-timer", "elderly-user", "mobile-user"], GOAL, HOME,
            lambda name: CountingSite(SITE, start_url=HOME),
            lambda name: ScriptedPolicy([{}, {"goalAchieved": True}]),
            max_concurrency=2, clock=FakeClock(), sleep=no_sleep,
        )
        assert counter["peak"] == 2
        assert counter["active"] == 0

    def test_bad_concurrency(self):
        with pytest.raises(ValueError):
            _compare(["power-user"], lambda name: [], max_concurrency=0)


# ── Analysis ───────────────────────────────────────────────────────────────────

class TestSummary:
    def test_summary_fields(self):
        rows = [
            _row("a", total_time=5.0, friction=["x"]),
            _row("b", total_time=20.0),
            _row("c", success=False, total_time=99.0, friction=["x", "y"], reason="patience"),
        ]
        s = summarise(rows)
        assert (s["total_personas"], s["success_count"], s["failure_count"]) == (3, 2, 1)
        assert (s["fastest_persona"], s["slowest_persona"]) == ("a", "b")
        assert (s["most_friction"], s["least_friction"]) == ("c", "b")
        assert s["avg_completion_time"] == 12.5
        assert s["common_friction_points"] == ["x"]

    def test_no_successes(self):
        s = summarise([_row("a", success=False, reason="loop")])
        assert s["fastest_persona"] == "N/A"
        assert s["avg_completion_time"] == 0.0

    def test_common_friction_counts_each_persona_once(self):
        rows = [_row("a", friction=["x", "x"]), _row("b", friction=["y"])]
        assert common_friction(rows) == []


class TestRecommendations:
    def test_clean_run(self):
        assert recommend([_row("a"), _row("b")]) == [
            "All personas completed the journey without significant cognitive barriers"
        ]

    def test_abandonment_groups(self):
        recs = recommend([
            _row("a", success=False, reason="patience"),
            _row("b", success=False, reason="patience"),
            _row("c", success=False, reason="confusion"),
        ])
        assert recs[0] == "2 persona(s) abandoned due to PATIENCE: a, b - consider shorter flows"
        assert recs[1].startswith("1 persona(s) abandoned due to CONFUSION: c")

    def test_beginners_slower_than_experts(self):
        recs = recommend([
            _row("novice", total_time=50.0, tech_level="beginner"),
            _row("pro", total_time=10.0, tech_level="expert"),
        ])
        assert "Beginners take 5.0x longer than experts - add more guidance" in recs

    def test_mobile_only_friction(self):
        recs = recommend([
            _row("phone", device="mobile", friction=["tiny buttons"]),
            _row("laptop", device="desktop"),
        ])
        assert "Only mobile users experienced friction - review mobile UX" in recs

    def test_backtracking(self):
        recs = recommend([_row("lost", backtracks=4)])
        assert any("backtracked frequently" in r for r in recs)


class TestTextReport:
    def test_report_lists_personas_and_abandonment(self):
        comparison = _compare(
            ["impatient-user", "power-user"],
            lambda name: [{"newFrustration": 0.75}, {"goalAchieved": True}],
        )
        text = format_comparison_report(comparison)
        assert "COGNITIVE PERSONA COMPARISON REPORT" in text
        assert "impatient-user: FRUSTRATION" in text
        assert "| power-user" in text
        assert "RECOMMENDATIONS" in text
