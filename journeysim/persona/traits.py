"""
Cognitive trait vector.

Every persona is described by 25 scalar traits in [0.0, 1.0], grouped in
six tiers.  Missing traits default to 0.5 (the population midpoint); values
outside the unit interval are rejected before they can reach any of the
emotion or threshold arithmetic.

    from journeysim.persona.traits import TraitVector

    traits = TraitVector.from_mapping({"patience": 0.2, "comprehension": 0.9})
    traits.patience          # 0.2
    traits.curiosity         # 0.5 (default)

Keys may be given in snake_case (``working_memory``) or in the camelCase
used by persona questionnaires and JSON exports (``workingMemory``).
"""
from __future__ import annotations

import re
from dataclasses import dataclass, fields, replace

DEFAULT_TRAIT_VALUE = 0.5


class ConfigurationError(ValueError):
    """A persona or trait definition is invalid (unknown id, bad value)."""


TRAIT_TIERS: dict[str, tuple[str, ...]] = {
    "core": (
        "patience", "risk_tolerance", "comprehension", "persistence",
        "curiosity", "working_memory", "reading_tendency",
    ),
    "emotional": (
        "resilience", "self_efficacy", "trust_calibration", "interrupt_recovery",
    ),
    "decision": (
        "satisficing", "information_foraging", "anchoring_bias",
        "time_horizon", "attribution_style",
    ),
    "planning": (
        "metacognitive_planning", "procedural_fluency", "transfer_learning",
    ),
    "perception": (
        "change_blindness", "mental_model_rigidity",
    ),
    "social": (
        "authority_sensitivity", "emotional_contagion", "fomo",
        "social_proof_sensitivity",
    ),
}

TRAIT_NAMES: tuple[str, ...] = tuple(
    name for tier in TRAIT_TIERS.values() for name in tier
)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def normalise_trait_name(name: str) -> str:
    """``workingMemory`` → ``working_memory``; snake_case passes through."""
    return _CAMEL_RE.sub("_", name.strip()).lower().replace("-", "_")


@dataclass(frozen=True)
class TraitVector:
    # core
    patience:                 float = DEFAULT_TRAIT_VALUE
    risk_tolerance:           float = DEFAULT_TRAIT_VALUE
    comprehension:            float = DEFAULT_TRAIT_VALUE
    persistence:              float = DEFAULT_TRAIT_VALUE
    curiosity:                float = DEFAULT_TRAIT_VALUE
    working_memory:           float = DEFAULT_TRAIT_VALUE
    reading_tendency:         float = DEFAULT_TRAIT_VALUE
    # emotional
    resilience:               float = DEFAULT_TRAIT_VALUE
    self_efficacy:            float = DEFAULT_TRAIT_VALUE
    trust_calibration:        float = DEFAULT_TRAIT_VALUE
    interrupt_recovery:       float = DEFAULT_TRAIT_VALUE
    # decision
    satisficing:              float = DEFAULT_TRAIT_VALUE
    information_foraging:     float = DEFAULT_TRAIT_VALUE
    anchoring_bias:           float = DEFAULT_TRAIT_VALUE
    time_horizon:             float = DEFAULT_TRAIT_VALUE
    attribution_style:        float = DEFAULT_TRAIT_VALUE
    # planning
    metacognitive_planning:   float = DEFAULT_TRAIT_VALUE
    procedural_fluency:       float = DEFAULT_TRAIT_VALUE
    transfer_learning:        float = DEFAULT_TRAIT_VALUE
    # perception
    change_blindness:         float = DEFAULT_TRAIT_VALUE
    mental_model_rigidity:    float = DEFAULT_TRAIT_VALUE
    # social
    authority_sensitivity:    float = DEFAULT_TRAIT_VALUE
    emotional_contagion:      float = DEFAULT_TRAIT_VALUE
    fomo:                     float = DEFAULT_TRAIT_VALUE
    social_proof_sensitivity: float = DEFAULT_TRAIT_VALUE

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, _validate(f.name, getattr(self, f.name)))

    @classmethod
    def from_mapping(cls, mapping: "dict | None" = None) -> "TraitVector":
        """
        Build a vector from a (possibly partial) dict of trait values.

        Raises ConfigurationError for unknown trait names, non-numeric
        values, or values outside [0, 1].
        """
        return cls(**_normalise_mapping(mapping or {}))

    def merged(self, overrides: "dict | None") -> "TraitVector":
        """Return a new vector with ``overrides`` applied on top of this one."""
        if not overrides:
            return self
        return replace(self, **_normalise_mapping(overrides))

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def tier(self, name: str) -> dict[str, float]:
        """Trait values for one tier (``core``, ``emotional`` …)."""
        try:
            names = TRAIT_TIERS[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown trait tier {name!r}. Expected one of: {', '.join(TRAIT_TIERS)}"
            ) from None
        return {n: getattr(self, n) for n in names}


def _normalise_mapping(mapping: dict) -> dict[str, float]:
    out = {}
    for raw_name, value in mapping.items():
        name = normalise_trait_name(str(raw_name))
        if name not in TRAIT_NAMES:
            raise ConfigurationError(
                f"Unknown trait {raw_name!r}. Known traits: {', '.join(TRAIT_NAMES)}"
            )
        out[name] = value
    return out


def _validate(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(
            f"Trait {name!r} must be a number in [0, 1], got {value!r}"
        )
    value = float(value)
    if value != value or not 0.0 <= value <= 1.0:
        raise ConfigurationError(
            f"Trait {name!r} must be within [0, 1], got {value!r}"
        )
    return value
