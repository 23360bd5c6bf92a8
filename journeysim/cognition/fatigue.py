"""
Decision fatigue and dual-process (System 1 / System 2) tracking.

Every executed action counts as a decision.  Fatigue grows with the
logarithm of the number of options the decision involved (Hick–Hyman), and
once it passes 0.7 the persona starts choosing defaults for the rest of the
journey.

The reasoning mode starts fast (System 1) for high-comprehension personas
and slow (System 2) for everyone else.  Confusion above a trait-derived
threshold forces System 2; calm plus a successful last action lets the
persona drop back to System 1.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass

FATIGUE_SCALE           = 0.0225
DEFAULTS_THRESHOLD      = 0.7
SYSTEM1_COMPREHENSION   = 0.7
LOW_COMPREHENSION       = 0.4
LOW_SWITCH_THRESHOLD    = 0.4
DEFAULT_SWITCH_THRESHOLD = 0.6


def estimate_option_count(action: str) -> int:
    """Rough option count behind an action string: fill 5, navigate/search 8, click 3."""
    lowered = (action or "").lower()
    if "fill" in lowered:
        return 5
    if "navigate" in lowered or "search" in lowered:
        return 8
    return 3


def calculate_fatigue_increment(options: int) -> float:
    return FATIGUE_SCALE * math.log2(max(options, 0) + 1)


@dataclass
class DecisionFatigue:
    decisions_made:           int = 0
    fatigue_level:            float = 0.0
    last_decision_complexity: int = 0
    choosing_defaults:        bool = False

    def record(self, action: str) -> float:
        """Count one decision and return the new fatigue level."""
        options = estimate_option_count(action)
        self.decisions_made += 1
        self.fatigue_level = min(1.0, self.fatigue_level + calculate_fatigue_increment(options))
        self.last_decision_complexity = options
        # sticky: once defaults start being chosen they stay chosen
        if self.fatigue_level > DEFAULTS_THRESHOLD:
            self.choosing_defaults = True
        return self.fatigue_level

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CognitiveMode:
    system:           int = 2
    switch_threshold: float = DEFAULT_SWITCH_THRESHOLD
    system1_errors:   int = 0
    time_in_system1:  float = 0.0   # ms
    time_in_system2:  float = 0.0   # ms

    @classmethod
    def initial(cls, traits) -> "CognitiveMode":
        return cls(
            system=1 if traits.comprehension > SYSTEM1_COMPREHENSION else 2,
            switch_threshold=(
                LOW_SWITCH_THRESHOLD if traits.comprehension < LOW_COMPREHENSION
                else DEFAULT_SWITCH_THRESHOLD
            ),
        )

    def credit(self, system: int, elapsed_ms: float):
        if system == 1:
            self.time_in_system1 += elapsed_ms
        else:
            self.time_in_system2 += elapsed_ms

    def to_dict(self) -> dict:
        return asdict(self)


def should_switch_to_system2(confusion: float, mode: CognitiveMode) -> bool:
    return mode.system == 1 and confusion > mode.switch_threshold


def can_return_to_system1(confusion: float, mode: CognitiveMode, last_action_succeeded: bool) -> bool:
    return mode.system == 2 and confusion < mode.switch_threshold and bool(last_action_succeeded)


def update_cognitive_mode(
    mode: CognitiveMode,
    confusion: float,
    last_action_succeeded: "bool | None",
    elapsed_ms: float = 0.0,
    new_outcome: bool = True,
) -> "str | None":
    """
    Run one step's transition check in place.

    ``elapsed_ms`` is credited to the mode that was active when the step
    began.  A failed last action counts as a System 1 error only when
    ``new_outcome`` says it was not already seen by an earlier check.
    Returns "system2" or "system1" when a switch happened, else None.
    """
    mode.credit(mode.system, elapsed_ms)
    if mode.system == 1 and new_outcome and last_action_succeeded is False:
        mode.system1_errors += 1

    if should_switch_to_system2(confusion, mode):
        mode.system = 2
        return "system2"
    if can_return_to_system1(confusion, mode, last_action_succeeded):
        mode.system = 1
        mode.system1_errors = 0
        return "system1"
    return None
