"""
Trait vectors, personas and profile derivation.
"""
import random

import pytest

from journeysim.persona.base import Persona
from journeysim.persona.presets import PersonaRegistry, default_registry
from journeysim.persona.profile import derive_profile, derive_thresholds, describe_level
from journeysim.persona.traits import TRAIT_NAMES, TRAIT_TIERS, ConfigurationError, TraitVector


# ── TraitVector ────────────────────────────────────────────────────────────────

class TestTraitVector:
    def test_twenty_five_traits_in_six_tiers(self):
        assert len(TRAIT_NAMES) == 25
        assert list(TRAIT_TIERS) == ["core", "emotional", "decision", "planning", "perception", "social"]

    def test_missing_traits_default_to_midpoint(self):
        t = TraitVector.from_mapping({"patience": 0.2})
        assert t.patience == 0.2
        assert t.curiosity == 0.5
        assert t.social_proof_sensitivity == 0.5

    def test_camel_case_keys(self):
        t = TraitVector.from_mapping({"workingMemory": 0.9, "riskTolerance": 0.1})
        assert t.working_memory == 0.9
        assert t.risk_tolerance == 0.1

    def test_unknown_trait_rejected(self):
        with pytest.raises(ConfigurationError, match="Unknown trait"):
            TraitVector.from_mapping({"charisma": 0.5})

    @pytest.mark.parametrize("value", [-0.01, 1.01, float("nan"), "high", True, None])
    def test_invalid_values_rejected(self, value):
        with pytest.raises(ConfigurationError):
            TraitVector.from_mapping({"patience": value})

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            TraitVector.from_mapping({"patience": 2})

    def test_merged_returns_new_vector(self):
        base = TraitVector.from_mapping({"patience": 0.2})
        merged = base.merged({"patience": 0.9})
        assert base.patience == 0.2
        assert merged.patience == 0.9

    def test_merged_without_overrides_is_identity(self):
        base = TraitVector()
        assert base.merged(None) is base

    def test_immutable(self):
        t = TraitVector()
        with pytest.raises(Exception):
            t.patience = 0.1

    def test_tier(self):
        t = TraitVector.from_mapping({"fomo": 0.9})
        assert t.tier("social")["fomo"] == 0.9
        with pytest.raises(ConfigurationError):
            t.tier("astral")


# ── Personas ───────────────────────────────────────────────────────────────────

class TestPersonas:
    def test_builtin_presets(self):
        names = default_registry().names()
        for expected in ("power-user", "first-timer", "mobile-user", "screen-reader-user",
                         "elderly-user", "impatient-user"):
            assert expected in names
        assert len(names) == 10

    def test_accessibility_personas(self):
        assert set(default_registry().accessibility_names()) == {
            "motor-impairment-tremor", "low-vision-magnified", "cognitive-adhd", "dyslexic-user",
        }

    def test_unknown_persona_is_configuration_error(self):
        with pytest.raises(ConfigurationError, match="Unknown persona"):
            default_registry().get("astronaut")

    def test_resolve_merges_overrides_without_touching_preset(self):
        registry = default_registry()
        variant = registry.resolve("elderly-user", {"patience": 0.1})
        assert variant.trait_vector().patience == 0.1
        assert variant.trait_vector().comprehension == 0.3
        assert registry.get("elderly-user").trait_vector().patience == 0.75

    def test_resolve_rejects_bad_override(self):
        with pytest.raises(ConfigurationError):
            default_registry().resolve("first-timer", {"patience": 1.5})

    def test_persona_needs_a_name(self):
        class Nameless(Persona):
            pass
        with pytest.raises(ConfigurationError):
            Nameless()

    def test_registry_is_read_only(self):
        registry = default_registry()
        with pytest.raises(TypeError):
            registry._table["x"] = None

    def test_with_files_loads_custom_personas(self, tmp_path):
        f = tmp_path / "nurse.py"
        f.write_text(
            "from journeysim import Persona\n\n"
            "class Nurse(Persona):\n"
            "    name = 'night-nurse'\n"
            "    traits = {'patience': 0.25}\n"
        )
        registry = default_registry().with_files([f])
        assert "night-nurse" in registry
        assert registry.get("night-nurse").trait_vector().patience == 0.25
        assert "night-nurse" not in default_registry()

    def test_descriptor(self):
        d = default_registry().get("mobile-user").descriptor()
        assert d["device"] == "mobile"
        assert d["pronoun"] == "they"

    def test_registry_from_classes_and_instances(self):
        class A(Persona):
            name = "a"
        registry = PersonaRegistry([A, A({"patience": 0.9})])
        assert len(registry) == 1
        assert registry.get("a").trait_vector().patience == 0.9


# ── Profile derivation ─────────────────────────────────────────────────────────

class TestDeriveProfile:
    def test_low_comprehension_lowers_confusion_max(self):
        assert derive_profile({"comprehension": 0.39}).thresholds.confusion_max == 0.6
        assert derive_profile({"comprehension": 0.4}).thresholds.confusion_max == 0.8

    def test_low_patience_lowers_frustration_max(self):
        assert derive_profile({"patience": 0.29}).thresholds.frustration_max == 0.7
        assert derive_profile({"patience": 0.3}).thresholds.frustration_max == 0.85

    def test_persistence_sets_progress_window_and_fatigue(self):
        high = derive_profile({"persistence": 0.71}).thresholds
        mid  = derive_profile({"persistence": 0.5}).thresholds
        low  = derive_profile({"persistence": 0.29}).thresholds
        assert high.max_steps_without_progress == 15
        assert mid.max_steps_without_progress == 10
        assert (high.decision_fatigue_max, mid.decision_fatigue_max, low.decision_fatigue_max) == (0.95, 0.85, 0.7)

    def test_time_limit_from_patience(self):
        assert derive_profile({"patience": 0.8}).thresholds.time_limit == 180
        assert derive_profile({"patience": 0.5}).thresholds.time_limit == 120
        assert derive_profile({"patience": 0.2}).thresholds.time_limit == 60

    def test_time_limit_override(self):
        assert derive_profile({"patience": 0.8}, time_limit=30).thresholds.time_limit == 30

    def test_constant_thresholds(self):
        t = derive_profile(None).thresholds
        assert t.patience_min == 0.1
        assert t.loop_detection_threshold == 3

    def test_descriptors(self):
        assert derive_profile({"reading_tendency": 0.8}).attention_pattern == "thorough"
        assert derive_profile({"reading_tendency": 0.2}).attention_pattern == "skim"
        assert derive_profile({}).attention_pattern == "selective"
        assert derive_profile({"risk_tolerance": 0.2}).decision_style == "cautious"
        assert derive_profile({"risk_tolerance": 0.8, "satisficing": 0.6}).decision_style == "impulsive"
        assert derive_profile({"comprehension": 0.8}).decision_style == "efficient"
        assert derive_profile({}).decision_style == "deliberate"

    @pytest.mark.parametrize("seed", range(5))
    def test_thresholds_depend_only_on_three_traits(self, seed):
        rng = random.Random(seed)
        for _ in range(40):
            traits = {name: rng.random() for name in TRAIT_NAMES}
            scrambled = {name: rng.random() for name in TRAIT_NAMES}
            for keep in ("comprehension", "patience", "persistence"):
                scrambled[keep] = traits[keep]
            a = derive_thresholds(TraitVector.from_mapping(traits))
            b = derive_thresholds(TraitVector.from_mapping(scrambled))
            assert a == b
            assert a.confusion_max in (0.6, 0.8)
            assert a.frustration_max in (0.7, 0.85)
            assert a.max_steps_without_progress in (10, 15)
            assert a.time_limit in (60, 120, 180)
            assert a.decision_fatigue_max in (0.7, 0.85, 0.95)

    def test_describe_level(self):
        assert describe_level(0.2, "impatient", "patient") == "impatient"
        assert describe_level(0.5, "impatient", "patient") == "moderate"
        assert describe_level(0.9, "impatient", "patient") == "patient"
