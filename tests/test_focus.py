"""
Focus hierarchy: goal classification, element priority, attention filter, scan order.
"""
import pytest

from journeysim.cognition.focus import (
    AREA_TYPES,
    COMPLETE_ACTION_HIERARCHY,
    EXPLORE_HIERARCHY,
    FIND_INFORMATION_HIERARCHY,
    FOCUS_HIERARCHY_PRESETS,
    TASK_TYPES,
    TROUBLESHOOT_HIERARCHY,
    calculate_focus_priority,
    filter_by_attention,
    get_distraction_ignore_rate,
    get_focus_hierarchy,
    get_scan_order,
    infer_task_type_from_goal,
)


class TestGoalClassification:
    @pytest.mark.parametrize("goal, task_type", [
        ("Apply for admission information", "complete_action"),   # action beats info
        ("I forgot my password and need to reset it", "troubleshoot"),
        ("Compare the premium and basic plans", "compare"),
        ("Find the application deadline", "find_information"),
        ("Look around the site", "explore"),
        ("", "explore"),
    ])
    def test_keyword_precedence(self, goal, task_type):
        assert infer_task_type_from_goal(goal) == task_type

    def test_case_insensitive(self):
        assert infer_task_type_from_goal("SUBMIT my form") == "complete_action"

    def test_unknown_task_type_falls_back(self):
        assert get_focus_hierarchy("daydream") is FIND_INFORMATION_HIERARCHY
        assert get_focus_hierarchy("explore") is EXPLORE_HIERARCHY


class TestPresets:
    def test_every_task_type_covers_every_area(self):
        assert set(FOCUS_HIERARCHY_PRESETS) == set(TASK_TYPES)
        for hierarchy in FOCUS_HIERARCHY_PRESETS.values():
            assert {fa.area for fa in hierarchy.focus_areas} == set(AREA_TYPES)

    def test_capacities(self):
        caps = {t: h.attention_capacity for t, h in FOCUS_HIERARCHY_PRESETS.items()}
        assert caps == {"find_information": 7, "complete_action": 5, "explore": 10,
                        "compare": 8, "troubleshoot": 5}

    def test_explore_softens_distractions(self):
        assert get_distraction_ignore_rate({"text": "Newsletter"}, EXPLORE_HIERARCHY.distraction_filters) \
            == pytest.approx(0.9 * 0.6)


class TestFocusPriority:
    def test_primary_area_boost(self):
        priority = calculate_focus_priority({"text": "Apply", "area": "cta"}, COMPLETE_ACTION_HIERARCHY)
        assert priority == pytest.approx(3.0 * 1.5)

    def test_unknown_area(self):
        assert calculate_focus_priority({"text": "x", "area": "carousel"}, COMPLETE_ACTION_HIERARCHY) \
            == pytest.approx(0.3)

    def test_no_area_leaves_priority_alone(self):
        assert calculate_focus_priority({"text": "x"}, COMPLETE_ACTION_HIERARCHY) == 1.0

    def test_distraction_and_relevance(self):
        element = {"text": "Subscribe to newsletter", "area": "sidebar", "is_relevant_to_goal": True}
        expected = 0.5 * (1 - 0.9) * 2.5    # "newsletter" is listed before "subscribe"
        assert calculate_focus_priority(element, COMPLETE_ACTION_HIERARCHY) == pytest.approx(expected)

    def test_matches_selector_and_aria_label(self):
        filters = COMPLETE_ACTION_HIERARCHY.distraction_filters
        assert get_distraction_ignore_rate({"text": "", "selector": "div.cookie-bar"}, filters) == 0.85
        assert get_distraction_ignore_rate({"text": "", "ariaLabel": "Open chat"}, filters) == 0.8
        assert get_distraction_ignore_rate({"text": "Continue"}, filters) == 0.0

    def test_troubleshoot_keeps_common_filter_first(self):
        rate = get_distraction_ignore_rate({"text": "Help centre"}, TROUBLESHOOT_HIERARCHY.distraction_filters)
        assert rate == 0.6


class TestAttentionFilter:
    def test_capacity_limits_selection(self):
        elements = [{"text": f"Button {i}", "area": "cta"} for i in range(9)]
        kept = filter_by_attention(elements, COMPLETE_ACTION_HIERARCHY)
        assert kept == elements[:5]

    def test_low_probability_areas_dropped(self):
        elements = [
            {"text": "Privacy", "area": "footer"},
            {"text": "Apply", "area": "cta"},
            {"text": "Untyped"},
        ]
        kept = filter_by_attention(elements, COMPLETE_ACTION_HIERARCHY)
        assert [e["text"] for e in kept] == ["Apply"]

    def test_sorted_by_area_probability(self):
        elements = [
            {"text": "Intro", "area": "content"},
            {"text": "Apply", "area": "cta"},
            {"text": "Menu", "area": "navigation"},
        ]
        kept = filter_by_attention(elements, COMPLETE_ACTION_HIERARCHY)
        assert [e["text"] for e in kept] == ["Apply", "Menu", "Intro"]

    def test_deterministic(self):
        elements = [{"text": str(i), "area": a} for i, a in enumerate(AREA_TYPES)]
        first = filter_by_attention(elements, EXPLORE_HIERARCHY)
        for _ in range(5):
            assert filter_by_attention(elements, EXPLORE_HIERARCHY) == first


class TestScanOrder:
    def test_f_pattern(self):
        order = get_scan_order(FIND_INFORMATION_HIERARCHY)
        assert order[:3] == ["headings", "content", "navigation"]

    def test_spotted_puts_primary_first(self):
        order = get_scan_order(COMPLETE_ACTION_HIERARCHY)
        assert order[:3] == ["cta", "forms", "navigation"]

    @pytest.mark.parametrize("task_type", TASK_TYPES)
    def test_no_duplicates(self, task_type):
        order = get_scan_order(FOCUS_HIERARCHY_PRESETS[task_type])
        assert len(order) == len(set(order))
        assert set(order) <= set(AREA_TYPES)
