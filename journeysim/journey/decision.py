"""
Decision objects returned by the reasoning collaborator.

A reasoner may hand back a Decision, a dict (camelCase or snake_case keys)
or free text with a JSON object somewhere inside it (LLM output, possibly
in a ```json fence).  ``parse_decision`` normalises all three and returns
the decision together with a list of problems found on the way.  Missing
or invalid fields mean "no change".

Action strings follow ``kind:target[:value]``:

    click:Apply now
    hover:Admissions
    hoverclick:Deadlines:Admissions
    fill:Email:a@b.c          (the value may itself contain colons)
    navigate:https://x.test/apply
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import asdict, dataclass

from journeysim.cognition.state import MOODS, PHASES

ACTION_KINDS = ("click", "hover", "hoverclick", "fill", "navigate")

_FIELD_ALIASES = {
    "actionTarget":        "action_target",
    "goalAchieved":        "goal_achieved",
    "goalProgress":        "goal_progress",
    "newConfusion":        "new_confusion",
    "newFrustration":      "new_frustration",
    "frictionDescription": "friction_description",
    "frictionElement":     "friction_element",
}

_UNIT_FIELDS = ("goal_progress", "new_confusion", "new_frustration")
_TEXT_FIELDS = ("monologue", "action_target", "friction_description", "friction_element")

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class MalformedDecision(ValueError):
    """A decision could not be parsed or failed strict validation."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__("; ".join(self.problems) or "malformed decision")


@dataclass
class Action:
    kind:   str
    target: str = ""
    value:  "str | None" = None
    parent: "str | None" = None    # hoverclick only

    @property
    def known(self) -> bool:
        return self.kind in ACTION_KINDS

    def __str__(self):
        parts = [self.kind, self.target]
        if self.kind == "fill":
            parts.append(self.value or "")
        elif self.parent:
            parts.append(self.parent)
        return ":".join(parts)


def parse_action(text: str) -> Action:
    kind, _, rest = (text or "").strip().partition(":")
    kind = kind.strip().lower()
    if kind == "fill":
        target, _, value = rest.partition(":")
        return Action(kind, target.strip(), value)
    if kind == "hoverclick":
        target, _, parent = rest.partition(":")
        return Action(kind, target.strip(), parent=parent.strip() or None)
    # navigate URLs and click targets keep their colons
    return Action(kind, rest.strip())


@dataclass
class Decision:
    phase:                str = "evaluate"
    monologue:            str = ""
    action:               "str | None" = None
    action_target:        "str | None" = None
    goal_achieved:        bool = False
    goal_progress:        "float | None" = None
    new_confusion:        "float | None" = None
    new_frustration:      "float | None" = None
    mood:                 "str | None" = None
    friction_description: "str | None" = None
    friction_element:     "str | None" = None

    def parsed_action(self) -> "Action | None":
        return parse_action(self.action) if self.action else None

    def to_dict(self) -> dict:
        return asdict(self)


def _extract_mapping(raw) -> "tuple[dict, list[str]]":
    if isinstance(raw, dict):
        return raw, []
    if isinstance(raw, str):
        match = _JSON_OBJECT.search(raw)
        if not match:
            return {}, ["no JSON object in reasoner output"]
        try:
            data = json.loads(match.group())
        except json.JSONDecodeError as e:
            return {}, [f"invalid JSON in reasoner output: {e}"]
        if not isinstance(data, dict):
            return {}, ["reasoner JSON is not an object"]
        return data, []
    if raw is None:
        return {}, ["reasoner returned nothing"]
    return {}, [f"unsupported decision type {type(raw).__name__}"]


def parse_decision(raw) -> "tuple[Decision, list[str]]":
    """Normalise reasoner output; returns ``(decision, problems)``."""
    if isinstance(raw, Decision):
        raw = raw.to_dict()
    data, problems = _extract_mapping(raw)
    if not data and not problems:
        problems.append("empty decision")

    fields = {}
    for key, value in data.items():
        fields[_FIELD_ALIASES.get(key, key)] = value

    decision = Decision()

    phase = fields.get("phase")
    if phase is not None:
        if phase in PHASES:
            decision.phase = phase
        else:
            problems.append(f"unknown phase {phase!r}")

    mood = fields.get("mood")
    if mood is not None:
        if mood in MOODS:
            decision.mood = mood
        else:
            problems.append(f"unknown mood {mood!r}")

    for name in _TEXT_FIELDS:
        value = fields.get(name)
        if value is None:
            continue
        if isinstance(value, str):
            setattr(decision, name, value)
        else:
            problems.append(f"{name} must be text, got {type(value).__name__}")

    action = fields.get("action")
    if isinstance(action, str) and action.strip() and action.strip().lower() not in ("null", "none"):
        decision.action = action.strip()
    elif action is not None and not isinstance(action, str):
        problems.append(f"action must be text, got {type(action).__name__}")

    achieved = fields.get("goal_achieved")
    if isinstance(achieved, bool):
        decision.goal_achieved = achieved
    elif achieved is not None:
        problems.append(f"goal_achieved must be a boolean, got {achieved!r}")

    for name in _UNIT_FIELDS:
        value = fields.get(name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            problems.append(f"{name} must be a number, got {value!r}")
            continue
        if not 0.0 <= value <= 1.0:
            problems.append(f"{name}={value} clamped to [0, 1]")
        setattr(decision, name, max(0.0, min(1.0, float(value))))

    return decision, problems
