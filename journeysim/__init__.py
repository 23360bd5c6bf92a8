"""
journeysim: cognitive user journey simulation

Simulate personas with patience, confusion, frustration and emotions as
they try to reach a goal on a website, find where they struggle, and
check the journeys against UX expectations written as Z3 constraints.

Quick start
-----------
  pip install journeysim
  journeysim init
  # edit driver.py, policy.py, expectations/
  journeysim run

Layers
------
  Personas      25 cognitive traits  → profile, abandonment thresholds
  Orchestrator  perceive/decide/act  → journey result with monologue
  Comparison    several personas     → comparison.json + recommendations
  Judgement     Z3 (Python)          → judgement.json
"""

from journeysim.journey import (
    Decision,
    JourneyOrchestrator,
    JourneyRequest,
    StaticSiteExecutor,
    FocusPolicy,
    ScriptedPolicy,
    compare_personas,
    run_journey,
)
from journeysim.judgement.expectation import Expectation, FactNamespace, Implies, named
from journeysim.persona import Persona, TraitVector, default_registry, derive_profile

__all__ = [
    "Decision", "JourneyOrchestrator", "JourneyRequest", "StaticSiteExecutor",
    "FocusPolicy", "ScriptedPolicy", "compare_personas", "run_journey",
    "Expectation", "FactNamespace", "Implies", "named",
    "Persona", "TraitVector", "default_registry", "derive_profile",
]
__version__ = "0.1.0"
