"""
Emotional state engine: triggers, decay, derived values, modifiers.
"""
import random
from dataclasses import replace

import pytest

from journeysim.cognition.emotions import (
    EMOTIONS,
    TRIGGERS,
    EmotionalState,
    apply_emotional_trigger,
    calculate_abandonment_modifier,
    calculate_decision_speed_modifier,
    calculate_exploration_tendency,
    create_emotional_config,
    create_initial_emotional_state,
    decay_emotions,
    describe_emotional_state,
    should_consider_abandonment,
    update_derived_values,
)
from journeysim.persona.traits import TRAIT_NAMES, TraitVector


def _random_traits(rng):
    return TraitVector.from_mapping({name: rng.random() for name in TRAIT_NAMES})


def _random_state(rng):
    return update_derived_values(EmotionalState(**{e: rng.random() for e in EMOTIONS}))


# ── Initial state and config ───────────────────────────────────────────────────

class TestInitialState:
    def test_seven_emotions(self):
        assert EMOTIONS == ("anxiety", "frustration", "boredom", "confusion",
                            "satisfaction", "excitement", "relief")
        assert set(EmotionalState().intensities()) == set(EMOTIONS)

    def test_midpoint_persona(self):
        s = create_initial_emotional_state(TraitVector())
        assert s.anxiety == pytest.approx(0.1 + 0.5 * 0.2 + 0.5 * 0.15)
        assert s.excitement == pytest.approx(0.1)
        assert s.boredom == pytest.approx(0.05)
        assert s.satisfaction == 0.1
        assert s.frustration == s.confusion == s.relief == 0.0

    def test_anxious_persona(self):
        s = create_initial_emotional_state({"patience": 0.0, "self_efficacy": 0.0})
        assert s.anxiety == pytest.approx(0.45)
        assert s.dominant == "anxiety"

    def test_config_scales_with_traits(self):
        resilient = create_emotional_config({"resilience": 1.0, "patience": 1.0})
        fragile   = create_emotional_config({"resilience": 0.0, "patience": 0.0})
        assert resilient.decay_rate == pytest.approx(0.15)
        assert fragile.decay_rate == pytest.approx(0.075)
        assert resilient.sensitivity == pytest.approx(1.0)
        assert fragile.sensitivity == pytest.approx(1.5)
        assert resilient.change_threshold == 0.05


# ── Triggers ───────────────────────────────────────────────────────────────────

class TestTriggers:
    def setup_method(self):
        self.config = create_emotional_config(TraitVector.from_mapping({"patience": 1.0}))
        self.state  = EmotionalState()

    def test_failure_raises_frustration(self):
        new, event = apply_emotional_trigger(self.state, "failure", self.config, step_number=3)
        assert new.frustration == pytest.approx(0.25)
        assert new.anxiety == pytest.approx(0.15)
        assert event.trigger == "failure"
        assert event.step_number == 3
        assert event.changes["frustration"] == pytest.approx(0.25)
        assert event.description == "Action failed to complete"

    def test_input_state_not_mutated(self):
        before = replace(self.state)
        apply_emotional_trigger(self.state, "error", self.config)
        assert self.state == before

    def test_severity_scales_effect(self):
        new, _ = apply_emotional_trigger(self.state, "failure", self.config, context={"severity": 2.0})
        assert new.frustration == pytest.approx(0.5)

    def test_custom_description(self):
        _, event = apply_emotional_trigger(self.state, "setback", self.config,
                                           context={"description": "Went back a page"})
        assert event.description == "Went back a page"

    def test_clamped_at_zero(self):
        new, _ = apply_emotional_trigger(self.state, "success", self.config)
        assert new.frustration == 0.0
        assert new.satisfaction == pytest.approx(0.2)

    def test_unknown_trigger(self):
        with pytest.raises(ValueError, match="Unknown emotional trigger"):
            apply_emotional_trigger(self.state, "tickled", self.config)

    def test_all_twelve_triggers(self):
        assert len(TRIGGERS) == 12
        for trigger in TRIGGERS:
            new, event = apply_emotional_trigger(self.state, trigger, self.config)
            assert event.trigger == trigger


# ── Derived values ─────────────────────────────────────────────────────────────

class TestDerivedValues:
    def test_neutral_below_dominance_floor(self):
        s = update_derived_values(EmotionalState(anxiety=0.14, boredom=0.1))
        assert s.dominant == "neutral"

    def test_dominant_is_strongest(self):
        s = update_derived_values(EmotionalState(frustration=0.6, anxiety=0.3))
        assert s.dominant == "frustration"

    def test_no_significant_emotion(self):
        s = update_derived_values(EmotionalState(anxiety=0.05, relief=0.04, valence=0.9, arousal=0.9))
        assert s.valence == 0.0
        assert s.arousal == 0.3

    def test_weighted_valence_and_arousal(self):
        s = update_derived_values(EmotionalState(frustration=0.5, satisfaction=0.5))
        assert s.valence == pytest.approx((-0.8 + 0.7) / 2)
        assert s.arousal == pytest.approx((0.7 + 0.5) / 2)

    def test_trigger_recomputes_derived(self):
        config = create_emotional_config(TraitVector.from_mapping({"patience": 1.0}))
        new, _ = apply_emotional_trigger(EmotionalState(), "error", config)
        assert new.dominant == "anxiety"
        assert new.valence < 0


# ── Decay ──────────────────────────────────────────────────────────────────────

class TestDecay:
    def test_noop_at_baseline(self):
        config = create_emotional_config(TraitVector.from_mapping({"curiosity": 0.9}))
        assert decay_emotions(config.baseline, config) == config.baseline

    def test_moves_fraction_toward_baseline(self):
        config = create_emotional_config(TraitVector.from_mapping({"resilience": 1.0}))
        state = update_derived_values(EmotionalState(frustration=1.0))
        decayed = decay_emotions(state, config)
        assert decayed.frustration == pytest.approx(1.0 - 0.15)

    def test_approaches_but_never_jumps(self):
        config = create_emotional_config(TraitVector())
        state = update_derived_values(EmotionalState(frustration=1.0))
        for _ in range(10):
            state = decay_emotions(state, config)
            assert state.frustration > 0.0
        assert state.frustration < 1.0


# ── Property fuzz ──────────────────────────────────────────────────────────────

class TestEmotionBounds:
    @pytest.mark.parametrize("seed", range(8))
    def test_random_trigger_sequences_stay_in_range(self, seed):
        rng = random.Random(seed)
        config = create_emotional_config(_random_traits(rng))
        state = config.baseline
        for step in range(60):
            state = decay_emotions(state, config)
            for _ in range(rng.randint(0, 3)):
                severity = rng.uniform(0.0, 3.0)
                state, _ = apply_emotional_trigger(state, rng.choice(TRIGGERS), config,
                                                   step_number=step, context={"severity": severity})
                for e in EMOTIONS:
                    assert 0.0 <= getattr(state, e) <= 1.0
                assert -1.0 <= state.valence <= 1.0
                assert 0.0 <= state.arousal <= 1.0
            for e in EMOTIONS:
                assert 0.0 <= getattr(state, e) <= 1.0

    @pytest.mark.parametrize("seed", range(5))
    def test_modifiers_within_bounds(self, seed):
        rng = random.Random(seed)
        for _ in range(200):
            state = _random_state(rng)
            assert 0.5 <= calculate_abandonment_modifier(state) <= 2.0
            assert 0.0 <= calculate_exploration_tendency(state) <= 1.0
            assert 0.5 <= calculate_decision_speed_modifier(state) <= 2.0


# ── Modifiers and rules ────────────────────────────────────────────────────────

class TestModifiers:
    def test_calm_state_is_neutral(self):
        s = EmotionalState()
        assert calculate_abandonment_modifier(s) == 1.0
        assert calculate_exploration_tendency(s) == 0.5
        assert calculate_decision_speed_modifier(s) == 1.0

    def test_negative_emotions_raise_abandonment(self):
        assert calculate_abandonment_modifier(EmotionalState(frustration=1.0, anxiety=1.0)) > 1.5

    def test_positive_emotions_lower_abandonment(self):
        assert calculate_abandonment_modifier(EmotionalState(satisfaction=1.0, excitement=1.0)) < 1.0

    def test_very_frustrated_decide_faster(self):
        assert calculate_decision_speed_modifier(EmotionalState(frustration=1.0)) == pytest.approx(0.8)

    @pytest.mark.parametrize("state, reason", [
        (EmotionalState(frustration=0.81, anxiety=0.9), "Extreme frustration"),
        (EmotionalState(anxiety=0.71, satisfaction=0.1), "High anxiety with no satisfaction"),
        (EmotionalState(boredom=0.61, frustration=0.51), "Bored and frustrated"),
        (EmotionalState(confusion=0.71, relief=0.1), "Persistently confused"),
    ])
    def test_abandonment_rules_in_order(self, state, reason):
        assert should_consider_abandonment(update_derived_values(state)) == (True, reason)

    def test_strong_negative_valence_rule(self):
        state = EmotionalState(frustration=0.6, anxiety=0.6, satisfaction=0.3, valence=-0.7, arousal=0.7)
        assert should_consider_abandonment(state) == (True, "Strong negative emotional state")

    def test_no_reason_when_calm(self):
        assert should_consider_abandonment(EmotionalState()) == (False, None)


class TestDescribe:
    def test_neutral(self):
        assert describe_emotional_state(EmotionalState()) == "Feeling neutral and calm"

    def test_with_secondary(self):
        s = update_derived_values(EmotionalState(frustration=0.5, anxiety=0.35))
        assert describe_emotional_state(s) == "Feeling somewhat frustrated with the experience, with some anxiety"

    def test_intensity_words(self):
        assert describe_emotional_state(update_derived_values(EmotionalState(confusion=0.9))).startswith("Feeling very confused")
        assert describe_emotional_state(update_derived_values(EmotionalState(relief=0.2))).startswith("Feeling slightly relieved")
