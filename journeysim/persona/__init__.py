from journeysim.persona.base import Persona
from journeysim.persona.presets import PersonaRegistry, default_registry, load_personas
from journeysim.persona.profile import AbandonmentThresholds, CognitiveProfile, derive_profile
from journeysim.persona.traits import ConfigurationError, TRAIT_NAMES, TRAIT_TIERS, TraitVector

__all__ = [
    "Persona", "PersonaRegistry", "default_registry", "load_personas",
    "AbandonmentThresholds", "CognitiveProfile", "derive_profile",
    "ConfigurationError", "TRAIT_NAMES", "TRAIT_TIERS", "TraitVector",
]
