"""
Motor and typing timing.

Pointing uses Fitts's Law, ``MT = a + b·log2(D/W + 1)``, slowed by age and
tremor.  Typing uses the keystroke-level model: a per-keystroke time that
shrinks with expertise plus one mental-preparation operator.  Everything
here is a pure function of persona metadata and the action; nothing looks
at the page.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass

FITTS_A_MS         = 50.0
FITTS_B_MS         = 150.0
DEFAULT_DISTANCE   = 300.0   # px, average screen movement
DEFAULT_WIDTH      = 80.0    # px, average button width

KEYSTROKE_SLOW_MS  = 280.0   # novice
KEYSTROKE_GAIN_MS  = 160.0   # expert saves this much per key
MENTAL_OPERATOR_MS = 1350.0  # KLM "M"

POINTER_ACTIONS = ("click", "hover", "hoverclick")


@dataclass(frozen=True)
class MotorProfile:
    age_modifier:    float = 1.0
    tremor_modifier: float = 0.0

    @property
    def typing_expertise(self) -> float:
        return max(0.0, 1.0 - (self.age_modifier - 1.0))


def age_modifier_from_range(age_range: "str | None") -> float:
    """1.0 up to 40, then +0.02 per year ("65+" → 1.5)."""
    if not age_range:
        return 1.0
    match = re.search(r"\d+", str(age_range))
    if not match:
        return 1.0
    age = int(match.group())
    return 1 + (age - 40) / 50 if age > 40 else 1.0


def tremor_modifier_from_jitter(jitter_px: "float | None") -> float:
    return (jitter_px or 0) / 10


def motor_profile(persona) -> MotorProfile:
    return MotorProfile(
        age_modifier=age_modifier_from_range(getattr(persona, "age_range", None)),
        tremor_modifier=tremor_modifier_from_jitter(getattr(persona, "mouse_jitter", 0)),
    )


def calculate_fitts_movement_time(
    distance: float = DEFAULT_DISTANCE,
    width: float = DEFAULT_WIDTH,
    profile: "MotorProfile | None" = None,
) -> float:
    profile = profile or MotorProfile()
    if width <= 0:
        raise ValueError(f"target width must be positive, got {width}")
    base = FITTS_A_MS + FITTS_B_MS * math.log2(max(distance, 0) / width + 1)
    return base * profile.age_modifier * (1 + profile.tremor_modifier)


def calculate_typing_time(text: str, expertise: float = 0.5, include_mental: bool = True) -> float:
    per_key = KEYSTROKE_SLOW_MS - KEYSTROKE_GAIN_MS * max(0.0, min(1.0, expertise))
    total = len(text or "") * per_key
    if include_mental:
        total += MENTAL_OPERATOR_MS
    return total


def action_delay_ms(action, profile: "MotorProfile | None" = None) -> float:
    """Delay applied before an action reaches the execution collaborator."""
    profile = profile or MotorProfile()
    if action.kind in POINTER_ACTIONS:
        return calculate_fitts_movement_time(profile=profile)
    if action.kind == "fill":
        return calculate_typing_time(action.value or "", profile.typing_expertise)
    return 0.0
