"""
External collaborator contracts.

The orchestrator never touches a page itself.  It talks to two objects:

  executor   perceives the current page and performs actions
             (perceive / click / hover / fill / navigate, optionally
             open / close)
  reasoner   proposes the next step: ``propose_decision(context)``
             returning a Decision, a dict or raw JSON text

Methods may be plain or ``async``; the orchestrator awaits whatever comes
back.  ``StaticSiteExecutor`` is a deterministic in-memory executor backed
by a dict of pages, used by the scaffolded project and the tests.
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class PerceptionFailure(RuntimeError):
    """The executor could not read the page state."""


class ExecutionFailure(RuntimeError):
    """The executor could not perform an action."""


@dataclass
class Perception:
    url:        str
    title:      str = "Current Page"
    elements:   list = field(default_factory=list)   # clickables: {"text", "tag", "role", "area", ...}
    inputs:     list = field(default_factory=list)   # fillables: {"label", "type", "options", ...}
    content:    str = ""
    screenshot: "bytes | str | None" = None

    @classmethod
    def coerce(cls, raw, fallback_url: str) -> "Perception":
        """
        Normalise what an executor returned.  Bare strings in ``elements``
        and ``inputs`` become ``{"text": s}`` / ``{"label": s}``; any other
        non-dict entry raises PerceptionFailure.
        """
        if isinstance(raw, Perception):
            perception = raw
        elif isinstance(raw, dict):
            perception = cls(
                url=raw.get("url") or fallback_url,
                title=raw.get("title") or "Current Page",
                elements=raw.get("elements") or [],
                inputs=raw.get("inputs") or [],
                content=raw.get("content") or "",
                screenshot=raw.get("screenshot"),
            )
        else:
            raise PerceptionFailure(f"executor returned {type(raw).__name__}, expected Perception or dict")
        perception.elements = _entries(perception.elements, "elements", "text")
        perception.inputs   = _entries(perception.inputs, "inputs", "label")
        return perception


def _entries(items, field_name: str, key: str) -> list:
    if isinstance(items, (str, dict)):
        raise PerceptionFailure(f"{field_name} must be a list, got {type(items).__name__}")
    out = []
    for item in items:
        if isinstance(item, str):
            out.append({key: item})
        elif isinstance(item, dict):
            out.append(item)
        else:
            raise PerceptionFailure(
                f"{field_name} entries must be dicts or strings, got {type(item).__name__}"
            )
    return out


@dataclass
class ActionOutcome:
    success: bool
    url:     "str | None" = None
    detail:  str = ""

    @classmethod
    def coerce(cls, raw) -> "ActionOutcome":
        if isinstance(raw, ActionOutcome):
            return raw
        if isinstance(raw, bool):
            return cls(success=raw)
        if isinstance(raw, dict):
            return cls(
                success=bool(raw.get("success")),
                url=raw.get("url") or raw.get("new_url") or raw.get("newUrl"),
                detail=raw.get("detail") or "",
            )
        raise ExecutionFailure(f"executor returned {type(raw).__name__}, expected ActionOutcome")


@runtime_checkable
class Executor(Protocol):
    def perceive(self): ...
    def click(self, target: str): ...
    def hover(self, target: str): ...
    def fill(self, label: str, value: str): ...
    def navigate(self, url: str): ...


@runtime_checkable
class Reasoner(Protocol):
    def propose_decision(self, context: dict): ...


async def maybe_await(value):
    if inspect.isawaitable(value):
        return await value
    return value


# ── In-memory site ─────────────────────────────────────────────────────────────

class StaticSiteExecutor:
    """
    Executor over a fixed site map.

        site = {
            "https://x.test/": {
                "title": "Home",
                "content": "[H1] Welcome",
                "elements": [{"text": "Apply", "tag": "a", "area": "cta", "href": "https://x.test/apply"}],
                "inputs":   [{"label": "Email", "type": "email"}],
            },
        }

    Clicking an element with an ``href`` moves to that page; an element
    with ``"broken": True`` raises ExecutionFailure.  ``fills`` records
    every successful fill as ``(url, label, value)``.
    """

    def __init__(self, pages: dict, start_url: "str | None" = None):
        if not pages:
            raise ValueError("StaticSiteExecutor needs at least one page")
        self.pages = pages
        self.url   = start_url or next(iter(pages))
        self.fills: list = []
        self.log:   list = []

    def _page(self) -> dict:
        try:
            return self.pages[self.url]
        except KeyError:
            raise PerceptionFailure(f"no such page: {self.url}") from None

    def _find(self, target: str) -> "dict | None":
        needle = (target or "").lower()
        for el in self._page().get("elements", []):
            if needle and needle in (el.get("text") or "").lower():
                return el
        return None

    def open(self, url: str):
        self.url = url

    def perceive(self) -> Perception:
        page = self._page()
        return Perception(
            url=self.url,
            title=page.get("title", "Current Page"),
            elements=[dict(e) for e in page.get("elements", [])],
            inputs=[dict(i) for i in page.get("inputs", [])],
            content=page.get("content", ""),
        )

    def click(self, target: str) -> ActionOutcome:
        self.log.append(("click", target))
        el = self._find(target)
        if el is None:
            return ActionOutcome(success=False, url=self.url, detail=f"no element matching {target!r}")
        if el.get("broken"):
            raise ExecutionFailure(f"element {target!r} did not respond")
        if el.get("href"):
            self.url = el["href"]
        return ActionOutcome(success=True, url=self.url)

    def hover(self, target: str) -> ActionOutcome:
        self.log.append(("hover", target))
        return ActionOutcome(success=self._find(target) is not None, url=self.url)

    def fill(self, label: str, value: str) -> ActionOutcome:
        self.log.append(("fill", label))
        needle = (label or "").lower()
        for inp in self._page().get("inputs", []):
            desc = inp.get("label") or inp.get("placeholder") or inp.get("name") or ""
            if needle and needle in desc.lower():
                options = inp.get("options")
                if options and value not in options:
                    return ActionOutcome(success=False, url=self.url, detail=f"{value!r} is not an option")
                self.fills.append((self.url, desc, value))
                return ActionOutcome(success=True, url=self.url)
        return ActionOutcome(success=False, url=self.url, detail=f"no input matching {label!r}")

    def navigate(self, url: str) -> ActionOutcome:
        self.log.append(("navigate", url))
        if url not in self.pages:
            return ActionOutcome(success=False, url=self.url, detail=f"404 {url}")
        self.url = url
        return ActionOutcome(success=True, url=url)
