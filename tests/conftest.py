"""
Shared fixtures: a small static site, a fake clock, and async test support.
"""
from __future__ import annotations

import asyncio
import inspect

import pytest

from journeysim.journey.collaborators import StaticSiteExecutor


def pytest_pyfunc_call(pyfuncitem):
    """Run ``async def`` tests on a fresh event loop (no plugin needed)."""
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        names = pyfuncitem._fixtureinfo.argnames
        loop = asyncio.new_event_loop()
        try:
            loop.run_until_complete(pyfuncitem.obj(**{n: pyfuncitem.funcargs[n] for n in names}))
        finally:
            loop.close()
        return True
    return None


HOME  = "https://uni.test/"
APPLY = "https://uni.test/apply"
NEWS  = "https://uni.test/news"
DONE  = "https://uni.test/done"

SITE = {
    HOME: {
        "title": "State University",
        "content": "[H1] Welcome to State University",
        "elements": [
            {"text": "Apply for admission", "tag": "a", "area": "cta", "href": APPLY},
            {"text": "Campus news", "tag": "a", "area": "navigation", "href": NEWS},
            {"text": "Subscribe to newsletter", "tag": "button", "area": "sidebar"},
            {"text": "Broken banner", "tag": "button", "area": "content", "broken": True},
        ],
    },
    APPLY: {
        "title": "Admission application",
        "content": "[H1] Apply for admission",
        "elements": [
            {"text": "Submit admission application", "tag": "button", "area": "forms", "href": DONE},
            {"text": "Home", "tag": "a", "area": "navigation", "href": HOME},
        ],
        "inputs": [
            {"label": "Email", "type": "email"},
            {"label": "Term", "type": "select", "options": ["Fall", "Spring"]},
        ],
    },
    NEWS: {
        "title": "News",
        "content": "[H1] Campus news",
        "elements": [{"text": "Home", "tag": "a", "area": "navigation", "href": HOME}],
    },
    DONE: {
        "title": "Application received",
        "content": "[H1] Thank you, your application was received",
    },
}


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 0.0, tick: float = 0.0):
        self.now  = start
        self.tick = tick

    def __call__(self) -> float:
        value = self.now
        self.now += self.tick
        return value


async def no_sleep(_seconds):
    return None


@pytest.fixture
def site():
    return StaticSiteExecutor(SITE, start_url=HOME)


@pytest.fixture
def clock():
    return FakeClock()
