"""
Expectation base class.

An expectation is a UX requirement stated over the facts of a finished
journey: "first-timers reach the goal", "nobody backtracks more than twice",
"if the goal was reached, it took under 15 steps".  Subclass Expectation
and return Z3 expressions from ``constraints(P)``, where ``P`` exposes
every journey fact as an attribute.

Example
-------
from journeysim import Expectation, Implies, named

class FirstTimersGetThere(Expectation):
    name        = "first-timers-get-there"
    description = "A newcomer can apply without help."
    personas    = ["first-timer", "elderly-user"]

    def constraints(self, P):
        return [
            named("journey/goal-reached", P.goal_achieved),
            named("journey/short-enough", Implies(P.goal_achieved, P.step_count <= 15)),
            named("journey/calm", P.max_frustration <= 0.6),
        ]
"""
import z3
from z3 import And, BoolVal, If, IntVal, Not, Or, RealVal  # noqa: F401  (re-exported for expectation files)


def Implies(a, b):
    """z3.Implies with a readable label and the antecedent kept for reporting."""
    expr = z3.Implies(a, b)
    expr._repr = f"If {a}, then {b}"
    expr._antecedent = a
    return expr


def named(label: str, expr):
    """Attach a human-readable name to any Z3 expression."""
    expr._repr = label
    return expr


class FactNamespace:
    """
    Wraps {name → Z3 value} so expectation files can write
    ``P.step_count`` instead of ``facts["step_count"]``.
    """

    def __init__(self, fact_vars: dict):
        self._vars = fact_vars

    def __getattr__(self, name: str):
        try:
            return self._vars[name]
        except KeyError:
            # Unobserved facts read as -1 so Implies(P.x >= 0, ...) stays vacuous.
            return IntVal(-1)

    def __repr__(self):
        return f"Facts({sorted(self._vars.keys())})"


class Expectation:
    """
    Base class for journey expectations.

    ``personas`` limits which journeys the expectation is checked against;
    leave it empty to check every persona.
    """

    name:        str = ""
    description: str = ""
    personas:    list = []

    def applies_to(self, persona: str) -> bool:
        return not self.personas or persona in self.personas

    def constraints(self, P: FactNamespace) -> list:
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement constraints(self, P)."
        )

    def __repr__(self):
        return f"Expectation(name={self.name!r})"
