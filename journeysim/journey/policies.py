"""
Deterministic reasoning policies.

Anything with a ``propose_decision(context)`` method can drive a journey.
These two need no model or network access:

  ScriptedPolicy   replays a fixed list of decisions (tests, demos)
  FocusPolicy      rule-based: fills known inputs, clicks the focused
                   element that best matches the goal, and declares success
                   when a marker text appears on the page

A policy instance keeps per-journey memory, so create one per journey
(``compare_personas`` takes a factory).
"""
from __future__ import annotations

import re

_WORD = re.compile(r"[a-z0-9]+")
_STOPWORDS = {"the", "a", "an", "for", "to", "of", "and", "or", "my", "in", "on", "with", "how", "do", "i"}


def _words(text: str) -> set:
    return {w for w in _WORD.findall((text or "").lower()) if w not in _STOPWORDS}


class ScriptedPolicy:
    """
    Replay decisions in order.

    Once the script runs out, ``then`` is returned for every further step
    (default: an empty dict, i.e. "no change, no action").
    """

    def __init__(self, decisions, then=None):
        self.decisions = list(decisions)
        self.then      = {} if then is None else then
        self.contexts: list = []

    def propose_decision(self, context: dict):
        self.contexts.append(context)
        index = len(self.contexts) - 1
        if index < len(self.decisions):
            return self.decisions[index]
        return self.then


class FocusPolicy:
    """
    Goal-directed heuristic over the focused elements.

    Args:
        success_text: page content/title marker meaning the goal is reached
        fill_values:  label → value for inputs the persona knows how to fill
    """

    def __init__(self, success_text: "str | None" = None, fill_values: "dict | None" = None):
        self.success_text = (success_text or "").lower()
        self.fill_values  = dict(fill_values or {})
        self._clicked: set = set()
        self._filled:  set = set()
        self._pages:   set = set()

    def propose_decision(self, context: dict) -> dict:
        page  = context["page"]
        state = context["state"]
        goal_words = _words(context["goal"])
        self._pages.add(page["url"])

        haystack = f"{page['title']}\n{page['content']}".lower()
        if self.success_text and self.success_text in haystack:
            return {
                "phase": "evaluate",
                "monologue": "That's it, I found what I came for.",
                "goalAchieved": True,
                "goalProgress": 1.0,
                "newConfusion": max(0.0, state["confusion"] - 0.2),
                "mood": "relieved",
            }

        progress = min(0.9, 0.1 * len(self._pages))

        for inp in page["inputs"]:
            label = inp.get("label") or inp.get("placeholder") or inp.get("name") or ""
            key = (page["url"], label)
            if label in self.fill_values and key not in self._filled:
                self._filled.add(key)
                return {
                    "phase": "execute",
                    "monologue": f"I'll fill in {label}.",
                    "action": f"fill:{label}:{self.fill_values[label]}",
                    "actionTarget": label,
                    "goalProgress": max(progress, state["goal_progress"]),
                    "mood": "hopeful",
                }

        best, best_score = None, 0
        for el in context["focused_elements"]:
            text = el.get("text") or ""
            if (page["url"], text) in self._clicked:
                continue
            score = len(goal_words & _words(text))
            if score > best_score:
                best, best_score = el, score

        if best is not None:
            text = best.get("text") or ""
            self._clicked.add((page["url"], text))
            return {
                "phase": "decide",
                "monologue": f'"{text}" looks like the way to go.',
                "action": f"click:{text}",
                "actionTarget": text,
                "goalProgress": max(progress, state["goal_progress"]),
                "newConfusion": max(0.0, state["confusion"] - 0.1),
                "mood": "hopeful",
            }

        confusion   = min(1.0, state["confusion"] + 0.15)
        frustration = min(1.0, state["frustration"] + 0.1)
        return {
            "phase": "comprehend",
            "monologue": f"I can't see anything here about \"{context['goal']}\".",
            "goalProgress": state["goal_progress"],
            "newConfusion": confusion,
            "newFrustration": frustration,
            "mood": "confused" if confusion >= frustration else "frustrated",
            "frictionDescription": "Nothing on the page matches the goal",
        }
