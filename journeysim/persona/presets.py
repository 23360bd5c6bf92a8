"""
Built-in personas and the persona registry.

The registry is an immutable lookup table built once at startup and passed
explicitly to the journey orchestrator, so concurrent journeys never share
mutable persona state.

    from journeysim.persona.presets import default_registry

    registry = default_registry()
    registry.names()                     # ['power-user', 'first-timer', ...]
    persona  = registry.resolve("elderly-user", {"patience": 0.9})

Custom personas are plain Python files containing Persona subclasses:

    registry = default_registry().with_files(["personas/nurse.py"])
"""
from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import MappingProxyType

from .base import Persona
from .traits import ConfigurationError


# ── Core personas ──────────────────────────────────────────────────────────────

class PowerUser(Persona):
    name         = "power-user"
    description  = "Tech-savvy expert who expects efficiency and knows shortcuts"
    age_range    = "25-45"
    tech_level   = "expert"
    mouse_jitter = 2
    traits = {
        "patience": 0.3, "risk_tolerance": 0.8, "comprehension": 0.9,
        "persistence": 0.4, "curiosity": 0.6, "working_memory": 0.85,
        "reading_tendency": 0.2, "self_efficacy": 0.9, "satisficing": 0.7,
        "procedural_fluency": 0.9, "transfer_learning": 0.85,
        "mental_model_rigidity": 0.6, "authority_sensitivity": 0.3,
    }


class FirstTimer(Persona):
    name         = "first-timer"
    description  = "New user exploring for the first time, needs guidance"
    age_range    = "18-65"
    tech_level   = "beginner"
    mouse_jitter = 8
    traits = {
        "patience": 0.6, "risk_tolerance": 0.3, "comprehension": 0.35,
        "persistence": 0.5, "curiosity": 0.7, "working_memory": 0.5,
        "reading_tendency": 0.8, "self_efficacy": 0.35, "trust_calibration": 0.6,
        "satisficing": 0.4, "metacognitive_planning": 0.3,
        "procedural_fluency": 0.2, "transfer_learning": 0.3,
        "change_blindness": 0.6, "authority_sensitivity": 0.7,
        "social_proof_sensitivity": 0.6,
    }


class MobileUser(Persona):
    name         = "mobile-user"
    description  = "Smartphone user with touch interface and limited screen"
    age_range    = "18-45"
    tech_level   = "intermediate"
    device       = "mobile"
    mouse_jitter = 15
    traits = {
        "patience": 0.35, "risk_tolerance": 0.6, "comprehension": 0.6,
        "persistence": 0.4, "curiosity": 0.5, "working_memory": 0.45,
        "reading_tendency": 0.25, "interrupt_recovery": 0.4, "satisficing": 0.75,
        "time_horizon": 0.3, "change_blindness": 0.65, "fomo": 0.6,
    }


class ScreenReaderUser(Persona):
    name         = "screen-reader-user"
    description  = "Blind user navigating with screen reader and keyboard"
    age_range    = "25-65"
    tech_level   = "intermediate"
    mouse_jitter = 0
    traits = {
        "patience": 0.8, "risk_tolerance": 0.4, "comprehension": 0.75,
        "persistence": 0.85, "curiosity": 0.4, "working_memory": 0.8,
        "reading_tendency": 0.9, "resilience": 0.75, "self_efficacy": 0.7,
        "information_foraging": 0.7, "metacognitive_planning": 0.8,
        "procedural_fluency": 0.7,
    }


class ElderlyUser(Persona):
    name         = "elderly-user"
    description  = "Older adult with potential vision and motor limitations"
    age_range    = "65+"
    tech_level   = "beginner"
    mouse_jitter = 12
    traits = {
        "patience": 0.75, "risk_tolerance": 0.2, "comprehension": 0.3,
        "persistence": 0.75, "curiosity": 0.4, "working_memory": 0.35,
        "reading_tendency": 0.85, "self_efficacy": 0.3, "trust_calibration": 0.7,
        "anchoring_bias": 0.7, "time_horizon": 0.7, "procedural_fluency": 0.25,
        "transfer_learning": 0.25, "change_blindness": 0.7,
        "mental_model_rigidity": 0.75, "authority_sensitivity": 0.8,
    }


class ImpatientUser(Persona):
    name         = "impatient-user"
    description  = "Quick to abandon slow or confusing experiences"
    age_range    = "18-45"
    tech_level   = "intermediate"
    mouse_jitter = 5
    traits = {
        "patience": 0.15, "risk_tolerance": 0.7, "comprehension": 0.6,
        "persistence": 0.2, "curiosity": 0.3, "working_memory": 0.5,
        "reading_tendency": 0.15, "resilience": 0.3, "satisficing": 0.85,
        "time_horizon": 0.2, "fomo": 0.5,
    }


# ── Accessibility personas ─────────────────────────────────────────────────────

class MotorImpairmentTremor(Persona):
    name          = "motor-impairment-tremor"
    description   = "User with essential tremor; small targets and hover menus are hard"
    age_range     = "45-75"
    tech_level    = "intermediate"
    mouse_jitter  = 25
    accessibility = True
    traits = {
        "patience": 0.6, "risk_tolerance": 0.3, "comprehension": 0.6,
        "persistence": 0.7, "working_memory": 0.55, "reading_tendency": 0.5,
        "resilience": 0.6, "self_efficacy": 0.45, "procedural_fluency": 0.5,
    }


class LowVisionMagnified(Persona):
    name          = "low-vision-magnified"
    description   = "Uses 300% zoom; sees only a small window of the page at once"
    age_range     = "35-70"
    tech_level    = "intermediate"
    mouse_jitter  = 4
    accessibility = True
    traits = {
        "patience": 0.65, "risk_tolerance": 0.35, "comprehension": 0.55,
        "persistence": 0.7, "working_memory": 0.45, "reading_tendency": 0.7,
        "change_blindness": 0.85, "information_foraging": 0.4,
    }


class CognitiveADHD(Persona):
    name          = "cognitive-adhd"
    description   = "Easily distracted, struggles with long forms and dense text"
    age_range     = "18-40"
    tech_level    = "intermediate"
    mouse_jitter  = 6
    accessibility = True
    traits = {
        "patience": 0.2, "risk_tolerance": 0.65, "comprehension": 0.6,
        "persistence": 0.25, "curiosity": 0.85, "working_memory": 0.3,
        "reading_tendency": 0.2, "interrupt_recovery": 0.25,
        "metacognitive_planning": 0.3, "fomo": 0.7, "emotional_contagion": 0.7,
    }


class DyslexicUser(Persona):
    name          = "dyslexic-user"
    description   = "Reads slowly; long paragraphs and ambiguous labels cause errors"
    age_range     = "18-55"
    tech_level    = "intermediate"
    mouse_jitter  = 3
    accessibility = True
    traits = {
        "patience": 0.5, "risk_tolerance": 0.45, "comprehension": 0.45,
        "persistence": 0.6, "working_memory": 0.4, "reading_tendency": 0.3,
        "self_efficacy": 0.4, "satisficing": 0.6,
    }


BUILTIN_PERSONAS: tuple[type[Persona], ...] = (
    PowerUser, FirstTimer, MobileUser, ScreenReaderUser, ElderlyUser,
    ImpatientUser, MotorImpairmentTremor, LowVisionMagnified, CognitiveADHD,
    DyslexicUser,
)


# ── Registry ───────────────────────────────────────────────────────────────────

class PersonaRegistry:
    """Read-only name → persona lookup."""

    def __init__(self, personas):
        table = {}
        for p in personas:
            persona = p() if isinstance(p, type) else p
            table[persona.name] = persona
        self._table = MappingProxyType(table)

    def get(self, name: str) -> Persona:
        try:
            return self._table[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown persona {name!r}. Available: {', '.join(self._table)}"
            ) from None

    def resolve(self, name: str, overrides: "dict | None" = None) -> Persona:
        """Look up a persona and merge trait overrides (validated eagerly)."""
        return self.get(name).with_traits(overrides)

    def names(self) -> list[str]:
        return list(self._table)

    def accessibility_names(self) -> list[str]:
        return [n for n, p in self._table.items() if p.accessibility]

    def with_files(self, files) -> "PersonaRegistry":
        """New registry with Persona subclasses from ``files`` added (later wins)."""
        return PersonaRegistry([*self._table.values(), *load_personas(files)])

    def __contains__(self, name: str) -> bool:
        return name in self._table

    def __len__(self):
        return len(self._table)

    def __repr__(self):
        return f"PersonaRegistry({self.names()})"


_DEFAULT_REGISTRY = PersonaRegistry(BUILTIN_PERSONAS)


def default_registry() -> PersonaRegistry:
    return _DEFAULT_REGISTRY


def load_personas(files) -> list[Persona]:
    """
    Import each Python file and return instances of all Persona subclasses
    defined in it.
    """
    personas = []
    for path in files:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Persona file not found: {path}")
        # Let persona files import siblings without being a package.
        script_dir = str(path.parent)
        if script_dir not in sys.path:
            sys.path.insert(0, script_dir)
        spec = importlib.util.spec_from_file_location(f"_journeysim_persona_{path.stem}", path)
        mod  = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(mod)
        for attr in vars(mod).values():
            if (
                isinstance(attr, type)
                and issubclass(attr, Persona)
                and attr is not Persona
                and attr.__module__ == mod.__name__
            ):
                personas.append(attr())
    return personas
