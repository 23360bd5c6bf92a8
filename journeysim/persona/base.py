"""
Persona base class.

Each simulated user is a Python class that extends Persona and declares
its demographics and cognitive traits as class attributes.  Built-in
personas live in ``journeysim.persona.presets``; project-specific ones
can be dropped into ``personas/*.py`` and listed under ``persona_files``
in journeysim.yaml.

Example
-------
from journeysim import Persona

class NightShiftNurse(Persona):
    name        = "night-shift-nurse"
    description = "Tired clinician checking a schedule between rounds"
    age_range   = "30-50"
    tech_level  = "intermediate"
    device      = "mobile"
    traits      = {"patience": 0.25, "working_memory": 0.4, "persistence": 0.6}
"""
from __future__ import annotations

from .traits import ConfigurationError, TraitVector


class Persona:
    """
    Base class for simulated users.

    ``traits`` is a partial dict; anything omitted defaults to 0.5.
    Instances are treated as immutable once created: use ``with_traits``
    to derive a variant rather than assigning to attributes.
    """

    name:         str = ""
    description:  str = ""
    age_range:    str = ""            # "25-45", "65+"
    tech_level:   str = "intermediate"  # beginner / intermediate / expert
    device:       str = "desktop"     # desktop / mobile / tablet
    mouse_jitter: float = 0.0         # pointer jitter in px; drives the tremor modifier
    pronoun:      str = "they"
    accessibility: bool = False
    traits:       dict = {}

    def __init__(self, trait_overrides: "dict | None" = None):
        if not self.name:
            raise ConfigurationError(
                f"{self.__class__.__name__} must set a non-empty `name`."
            )
        base = TraitVector.from_mapping(self.traits)
        self._traits = base.merged(trait_overrides)

    def trait_vector(self) -> TraitVector:
        return self._traits

    def with_traits(self, overrides: "dict | None") -> "Persona":
        """Return a new persona of the same class with trait overrides merged in."""
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone._traits = self._traits.merged(overrides)
        return clone

    def descriptor(self) -> dict:
        """Serialisable summary used in decision contexts and results."""
        return {
            "name":        self.name,
            "description": self.description,
            "age_range":   self.age_range,
            "tech_level":  self.tech_level,
            "device":      self.device,
            "pronoun":     self.pronoun,
        }

    def __repr__(self):
        return f"Persona(name={self.name!r})"
