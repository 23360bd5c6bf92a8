"""
Cognitive profile derivation.

A profile is derived once per journey from the persona's traits.  It holds
the abandonment thresholds the orchestrator checks every step plus two
qualitative descriptors handed to the reasoning collaborator.  Thresholds
depend on comprehension, patience and persistence only.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass

from .traits import TraitVector

PATIENCE_MIN             = 0.1
LOOP_DETECTION_THRESHOLD = 3


@dataclass(frozen=True)
class AbandonmentThresholds:
    patience_min:               float
    confusion_max:              float
    frustration_max:            float
    max_steps_without_progress: int
    loop_detection_threshold:   int
    time_limit:                 float   # seconds
    decision_fatigue_max:       float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class CognitiveProfile:
    traits:            TraitVector
    attention_pattern: str
    decision_style:    str
    thresholds:        AbandonmentThresholds

    def to_dict(self) -> dict:
        return {
            "traits":            self.traits.as_dict(),
            "attention_pattern": self.attention_pattern,
            "decision_style":    self.decision_style,
            "thresholds":        self.thresholds.to_dict(),
        }


def derive_thresholds(traits: TraitVector, time_limit: "float | None" = None) -> AbandonmentThresholds:
    if time_limit is None:
        if traits.patience > 0.7:
            time_limit = 180
        elif traits.patience < 0.3:
            time_limit = 60
        else:
            time_limit = 120

    if traits.persistence > 0.7:
        fatigue_max = 0.95
    elif traits.persistence < 0.3:
        fatigue_max = 0.7
    else:
        fatigue_max = 0.85

    return AbandonmentThresholds(
        patience_min=PATIENCE_MIN,
        confusion_max=0.6 if traits.comprehension < 0.4 else 0.8,
        frustration_max=0.7 if traits.patience < 0.3 else 0.85,
        max_steps_without_progress=15 if traits.persistence > 0.7 else 10,
        loop_detection_threshold=LOOP_DETECTION_THRESHOLD,
        time_limit=float(time_limit),
        decision_fatigue_max=fatigue_max,
    )


def attention_pattern(traits: TraitVector) -> str:
    if traits.reading_tendency > 0.7:
        return "thorough"
    if traits.reading_tendency < 0.3:
        return "skim"
    return "selective"


def decision_style(traits: TraitVector) -> str:
    if traits.risk_tolerance < 0.3:
        return "cautious"
    if traits.risk_tolerance > 0.7 and traits.satisficing > 0.5:
        return "impulsive"
    if traits.comprehension > 0.7:
        return "efficient"
    return "deliberate"


def derive_profile(traits: "TraitVector | dict | None", time_limit: "float | None" = None) -> CognitiveProfile:
    """
    Derive the read-only cognitive profile for one journey.

    ``traits`` may be a TraitVector or a partial dict (missing → 0.5).
    ``time_limit`` overrides the patience-derived time budget in seconds.
    """
    if not isinstance(traits, TraitVector):
        traits = TraitVector.from_mapping(traits)
    return CognitiveProfile(
        traits=traits,
        attention_pattern=attention_pattern(traits),
        decision_style=decision_style(traits),
        thresholds=derive_thresholds(traits, time_limit),
    )


def describe_level(value: float, low: str, high: str, *, low_cut: float = 0.3,
                   high_cut: float = 0.7, mid: str = "moderate") -> str:
    """Qualitative label for a trait value: ``describe_level(0.2, "impatient", "patient")``."""
    if value < low_cut:
        return low
    if value > high_cut:
        return high
    return mid
