"""
Emotional state engine.

Seven emotion intensities in [0, 1] plus three derived values:

  dominant  strongest emotion, or "neutral" when nothing reaches 0.15
  valence   intensity-weighted pleasantness in [-1, 1]
  arousal   intensity-weighted activation in [0, 1]

Events (triggers) push emotions by fixed deltas scaled by the persona's
sensitivity; every step the state decays exponentially toward the
persona's baseline.  Functions here never mutate their input state: they
return a new EmotionalState with derived values already recomputed.

The behavioural modifiers at the bottom translate an emotional state into
multipliers the rest of the simulation can use (abandonment risk,
willingness to explore, decision speed).

Grounded in Scherer's component process model, Russell's circumplex model
of affect (valence × arousal) and the OCC appraisal model.
"""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field, replace

from journeysim.persona.traits import TraitVector

EMOTIONS: tuple[str, ...] = (
    "anxiety", "frustration", "boredom", "confusion",
    "satisfaction", "excitement", "relief",
)

TRIGGERS: tuple[str, ...] = (
    "success", "failure", "error", "progress", "setback", "waiting",
    "discovery", "completion", "confusion_onset", "clarity",
    "time_pressure", "recovery",
)

DEFAULT_DECAY_RATE       = 0.15
DEFAULT_SENSITIVITY      = 1.0
DEFAULT_CHANGE_THRESHOLD = 0.05

DOMINANCE_FLOOR   = 0.15   # below this the dominant emotion reads as neutral
SIGNIFICANCE_FLOOR = 0.05  # emotions at or below this don't weigh into valence/arousal

EMOTION_VALENCE = {
    "anxiety":      -0.7,
    "frustration":  -0.8,
    "boredom":      -0.4,
    "confusion":    -0.5,
    "satisfaction":  0.7,
    "excitement":    0.8,
    "relief":        0.5,
}

EMOTION_AROUSAL = {
    "anxiety":      0.8,
    "frustration":  0.7,
    "boredom":      0.2,
    "confusion":    0.5,
    "satisfaction": 0.5,
    "excitement":   0.9,
    "relief":       0.3,
}

# Unscaled per-emotion deltas for each trigger.
TRIGGER_EFFECTS: dict[str, dict[str, float]] = {
    "success":         {"satisfaction": 0.2, "excitement": 0.1, "frustration": -0.15,
                        "anxiety": -0.1, "confusion": -0.1},
    "failure":         {"frustration": 0.25, "anxiety": 0.15, "satisfaction": -0.1,
                        "excitement": -0.05},
    "error":           {"anxiety": 0.3, "frustration": 0.2, "confusion": 0.15,
                        "satisfaction": -0.15},
    "progress":        {"satisfaction": 0.15, "excitement": 0.1, "boredom": -0.1,
                        "frustration": -0.05},
    "setback":         {"frustration": 0.2, "anxiety": 0.1, "satisfaction": -0.15,
                        "excitement": -0.1},
    "waiting":         {"boredom": 0.15, "frustration": 0.05, "excitement": -0.05},
    "discovery":       {"excitement": 0.25, "satisfaction": 0.1, "boredom": -0.2},
    "completion":      {"satisfaction": 0.3, "relief": 0.2, "excitement": 0.05,
                        "frustration": -0.2, "anxiety": -0.15},
    "confusion_onset": {"confusion": 0.25, "anxiety": 0.1, "frustration": 0.1,
                        "satisfaction": -0.1},
    "clarity":         {"confusion": -0.2, "relief": 0.15, "satisfaction": 0.1,
                        "anxiety": -0.1},
    "time_pressure":   {"anxiety": 0.25, "frustration": 0.1, "boredom": -0.1},
    "recovery":        {"relief": 0.25, "satisfaction": 0.1, "frustration": -0.15,
                        "anxiety": -0.2},
}

TRIGGER_DESCRIPTIONS = {
    "success":         "Action completed successfully",
    "failure":         "Action failed to complete",
    "error":           "System error occurred",
    "progress":        "Made progress toward goal",
    "setback":         "Lost progress or took wrong path",
    "waiting":         "Waited for page or element",
    "discovery":       "Discovered something interesting",
    "completion":      "Completed a sub-goal",
    "confusion_onset": "Became confused by UI",
    "clarity":         "UI became clearer",
    "time_pressure":   "Running low on patience",
    "recovery":        "Recovered from error or setback",
}

_EMOTION_PHRASES = {
    "anxiety":      "anxious about completing this task",
    "frustration":  "frustrated with the experience",
    "boredom":      "bored and losing interest",
    "confusion":    "confused about what to do",
    "satisfaction": "satisfied with progress",
    "excitement":   "excited and engaged",
    "relief":       "relieved after overcoming obstacles",
}


@dataclass
class EmotionalState:
    anxiety:      float = 0.0
    frustration:  float = 0.0
    boredom:      float = 0.0
    confusion:    float = 0.0
    satisfaction: float = 0.0
    excitement:   float = 0.0
    relief:       float = 0.0
    dominant:     str = "neutral"
    valence:      float = 0.0
    arousal:      float = 0.3

    def intensities(self) -> dict[str, float]:
        return {e: getattr(self, e) for e in EMOTIONS}

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class EmotionalConfig:
    baseline:         EmotionalState
    decay_rate:       float = DEFAULT_DECAY_RATE
    sensitivity:      float = DEFAULT_SENSITIVITY
    change_threshold: float = DEFAULT_CHANGE_THRESHOLD


@dataclass
class EmotionalEvent:
    timestamp:   float
    trigger:     str
    changes:     dict = field(default_factory=dict)
    description: str = ""
    step_number: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def _coerce_traits(traits) -> TraitVector:
    if isinstance(traits, TraitVector):
        return traits
    return TraitVector.from_mapping(traits)


# ── Factories ──────────────────────────────────────────────────────────────────

def create_initial_emotional_state(traits: "TraitVector | dict | None" = None) -> EmotionalState:
    """
    Persona-specific starting emotions.

    Low patience and low self-efficacy raise baseline anxiety; curiosity
    raises excitement and lowers boredom.  Satisfaction starts at 0.1
    (slight optimism); everything else starts at 0.
    """
    t = _coerce_traits(traits)
    state = EmotionalState(
        anxiety=_clamp(0.1 + (1 - t.patience) * 0.2 + (1 - t.self_efficacy) * 0.15),
        boredom=_clamp((1 - t.curiosity) * 0.1),
        satisfaction=0.1,
        excitement=_clamp(t.curiosity * 0.2),
    )
    return update_derived_values(state)


def create_emotional_config(traits: "TraitVector | dict | None" = None) -> EmotionalConfig:
    t = _coerce_traits(traits)
    return EmotionalConfig(
        baseline=create_initial_emotional_state(t),
        # resilient personas recover faster
        decay_rate=DEFAULT_DECAY_RATE * (0.5 + t.resilience * 0.5),
        # impatient personas react more strongly
        sensitivity=DEFAULT_SENSITIVITY * (1.5 - t.patience * 0.5),
        change_threshold=DEFAULT_CHANGE_THRESHOLD,
    )


# ── Updates ────────────────────────────────────────────────────────────────────

def calculate_trigger_effects(trigger: str, sensitivity: float) -> dict[str, float]:
    try:
        table = TRIGGER_EFFECTS[trigger]
    except KeyError:
        raise ValueError(
            f"Unknown emotional trigger {trigger!r}. Expected one of: {', '.join(TRIGGERS)}"
        ) from None
    return {emotion: delta * sensitivity for emotion, delta in table.items()}


def apply_emotional_trigger(
    state: EmotionalState,
    trigger: str,
    config: EmotionalConfig,
    step_number: int = 0,
    context: "dict | None" = None,
) -> tuple[EmotionalState, EmotionalEvent]:
    """
    Apply one trigger and return ``(new_state, event)``.

    ``context`` may carry ``severity`` (multiplies sensitivity, default 1.0)
    and ``description`` (defaults to the trigger's canned description).
    """
    context  = context or {}
    severity = context.get("severity", 1.0)
    changes  = calculate_trigger_effects(trigger, config.sensitivity * severity)

    new_state = replace(state)
    for emotion, delta in changes.items():
        setattr(new_state, emotion, _clamp(getattr(new_state, emotion) + delta))
    new_state = update_derived_values(new_state)

    event = EmotionalEvent(
        timestamp=time.time(),
        trigger=trigger,
        changes=changes,
        description=context.get("description") or TRIGGER_DESCRIPTIONS[trigger],
        step_number=step_number,
    )
    return new_state, event


def decay_emotions(state: EmotionalState, config: EmotionalConfig) -> EmotionalState:
    """Move every emotion a ``decay_rate`` fraction of the way back to baseline."""
    new_state = replace(state)
    for emotion in EMOTIONS:
        current = getattr(state, emotion)
        base    = getattr(config.baseline, emotion)
        setattr(new_state, emotion, _clamp(current + (base - current) * config.decay_rate))
    return update_derived_values(new_state)


def update_derived_values(state: EmotionalState) -> EmotionalState:
    """Recompute dominant / valence / arousal in place and return the state."""
    dominant, max_intensity = "neutral", 0.0
    for emotion in EMOTIONS:
        intensity = getattr(state, emotion)
        if intensity > max_intensity:
            dominant, max_intensity = emotion, intensity
    if max_intensity < DOMINANCE_FLOOR:
        dominant = "neutral"
    state.dominant = dominant

    total = weighted_valence = weighted_arousal = 0.0
    for emotion in EMOTIONS:
        intensity = getattr(state, emotion)
        if intensity > SIGNIFICANCE_FLOOR:
            total            += intensity
            weighted_valence += intensity * EMOTION_VALENCE[emotion]
            weighted_arousal += intensity * EMOTION_AROUSAL[emotion]

    if total > 0:
        state.valence = _clamp(weighted_valence / total, -1.0, 1.0)
        state.arousal = _clamp(weighted_arousal / total)
    else:
        state.valence = 0.0
        state.arousal = 0.3
    return state


# ── Behavioural modifiers ──────────────────────────────────────────────────────

def calculate_abandonment_modifier(state: EmotionalState) -> float:
    """
    Multiplier on abandonment risk in [0.5, 2.0]: >1 means negative
    emotions make giving up more likely, <1 means positive ones hold
    the user in.
    """
    negative = (state.anxiety * 0.3 + state.frustration * 0.35
                + state.boredom * 0.25 + state.confusion * 0.2)
    positive = (state.satisfaction * 0.3 + state.excitement * 0.25
                + state.relief * 0.15)
    return _clamp(1.0 + negative - positive * 0.7, 0.5, 2.0)


def calculate_exploration_tendency(state: EmotionalState) -> float:
    """Willingness to leave the current path, in [0, 1]."""
    positive = state.excitement * 0.4 + state.satisfaction * 0.3 + state.relief * 0.1
    negative = state.anxiety * 0.4 + state.frustration * 0.3 + state.confusion * 0.2
    # strong boredom pushes toward wandering off
    boredom_effect = state.boredom * 0.2 if state.boredom > 0.5 else 0.0
    return _clamp(0.5 + positive - negative + boredom_effect)


def calculate_decision_speed_modifier(state: EmotionalState) -> float:
    """
    Multiplier on decision time in [0.5, 2.0].  Anxiety and confusion slow
    decisions down; excitement and very high frustration (impulsiveness)
    speed them up.
    """
    slowing   = state.anxiety * 0.3 + state.confusion * 0.4
    impulsive = (state.frustration - 0.6) * 0.5 if state.frustration > 0.6 else 0.0
    speeding  = state.excitement * 0.2 + impulsive
    return _clamp(1.0 + slowing - speeding, 0.5, 2.0)


def should_consider_abandonment(state: EmotionalState) -> tuple[bool, "str | None"]:
    """Ordered emotional give-up rules; the first match wins."""
    if state.frustration > 0.8:
        return True, "Extreme frustration"
    if state.anxiety > 0.7 and state.satisfaction < 0.2:
        return True, "High anxiety with no satisfaction"
    if state.boredom > 0.6 and state.frustration > 0.5:
        return True, "Bored and frustrated"
    if state.confusion > 0.7 and state.relief < 0.2:
        return True, "Persistently confused"
    if state.valence < -0.6 and state.arousal > 0.6:
        return True, "Strong negative emotional state"
    return False, None


def describe_emotional_state(state: EmotionalState) -> str:
    dominant = state.dominant
    if dominant == "neutral" or getattr(state, dominant) < DOMINANCE_FLOOR:
        return "Feeling neutral and calm"

    intensity = getattr(state, dominant)
    if intensity > 0.7:
        word = "very"
    elif intensity > 0.4:
        word = "somewhat"
    else:
        word = "slightly"
    description = f"Feeling {word} {_EMOTION_PHRASES[dominant]}"

    for emotion in EMOTIONS:
        if emotion != dominant and getattr(state, emotion) > 0.3:
            description += f", with some {emotion}"
            break
    return description
