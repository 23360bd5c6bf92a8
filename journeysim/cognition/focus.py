"""
Focus/attention hierarchy.

Different goals make users look at different parts of a page.  Each of the
five task types carries a fixed table over ten page-area types
(probability of looking there, relevance boost, primary flag), a list of
distraction filters ("banner blindness") and a scan pattern.

Elements are plain dicts as reported by the execution collaborator:

    {"text": "Apply now", "selector": "a.btn", "aria_label": "",
     "area": "cta", "is_relevant_to_goal": True}

All selection here is deterministic: ``filter_by_attention`` uses a fixed
probability threshold, never random sampling, so scenario runs reproduce.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from types import MappingProxyType

TASK_TYPES = ("find_information", "complete_action", "explore", "compare", "troubleshoot")

AREA_TYPES = (
    "headings", "navigation", "search", "content", "cta",
    "sidebar", "forms", "footer", "hero", "images",
)

SCAN_PATTERNS = ("f-pattern", "z-pattern", "spotted", "exhaustive", "nav-first")

UNMAPPED_AREA_PROBABILITY = 0.2    # elements without a known area
UNKNOWN_AREA_PRIORITY     = 0.3
PRIMARY_AREA_BOOST        = 1.5
GOAL_RELEVANCE_BOOST      = 2.5
ATTENTION_THRESHOLD       = 0.5


@dataclass(frozen=True)
class FocusArea:
    area:            str
    probability:     float
    relevance_boost: float
    is_primary:      bool = False


@dataclass(frozen=True)
class DistractionFilter:
    pattern:     str
    ignore_rate: float
    reason:      str = ""


@dataclass(frozen=True)
class FocusHierarchy:
    task_type:              str
    focus_areas:            tuple
    distraction_filters:    tuple
    scan_pattern:           str
    nav_first_probability:  float
    search_use_probability: float
    attention_capacity:     int
    focus_decay_ms:         int

    def area(self, name: "str | None") -> "FocusArea | None":
        for fa in self.focus_areas:
            if fa.area == name:
                return fa
        return None

    def area_probability(self, name: "str | None") -> float:
        fa = self.area(name)
        return fa.probability if fa else UNMAPPED_AREA_PROBABILITY


def _filters(*rows) -> tuple:
    return tuple(DistractionFilter(*row) for row in rows)


def _areas(*rows) -> tuple:
    return tuple(FocusArea(*row) for row in rows)


# ── Distraction filters ────────────────────────────────────────────────────────

COMMON_DISTRACTIONS = _filters(
    ("cookie",      0.85, "Cookie consent fatigue"),
    ("gdpr",        0.85, "GDPR banner blindness"),
    ("consent",     0.8,  "Consent popup fatigue"),
    ("newsletter",  0.9,  "Newsletter popup fatigue"),
    ("subscribe",   0.75, "Subscription prompts"),
    ("sign up for", 0.7,  "Signup prompt fatigue"),
    ("chat",        0.8,  "Chat widget blindness"),
    ("help",        0.6,  "Help widget (unless stuck)"),
    ("support",     0.6,  "Support widget"),
    ("promo",       0.85, "Promotional banner blindness"),
    ("sale",        0.7,  "Sale banner (unless shopping)"),
    ("discount",    0.7,  "Discount popup"),
    ("social",      0.9,  "Social widget blindness"),
    ("follow",      0.85, "Follow button blindness"),
    ("share",       0.8,  "Share button blindness"),
    ("recommended", 0.75, "Recommendation fatigue"),
    ("related",     0.6,  "Related content (low priority)"),
    ("trending",    0.7,  "Trending content distraction"),
)

TASK_SPECIFIC_DISTRACTIONS = MappingProxyType({
    "find_information": _filters(
        ("form:not([action*='search'])", 0.7, "Forms distract from info-seeking"),
        ("login",   0.8, "Login irrelevant for info"),
        ("account", 0.8, "Account irrelevant for info"),
    ),
    "complete_action": _filters(
        ("blog",  0.85, "Blog content distracts from action"),
        ("news",  0.85, "News content distracts from action"),
        ("about", 0.7,  "About page less relevant"),
    ),
    "explore": (),
    "compare": _filters(
        ("testimonial", 0.6, "Social proof secondary to facts"),
        ("faq",         0.5, "FAQ might have comparison info"),
    ),
    "troubleshoot": _filters(
        ("testimonial", 0.9, "Irrelevant when troubleshooting"),
        ("pricing",     0.9, "Pricing irrelevant for troubleshooting"),
        ("features",    0.8, "Features less relevant when troubleshooting"),
    ),
})


# ── Hierarchy presets ──────────────────────────────────────────────────────────

FIND_INFORMATION_HIERARCHY = FocusHierarchy(
    task_type="find_information",
    focus_areas=_areas(
        ("headings",   0.95, 2.5, True),
        ("navigation", 0.85, 2.0, True),
        ("search",     0.75, 2.0, False),
        ("content",    0.70, 1.5),
        ("cta",        0.50, 1.2),
        ("sidebar",    0.30, 0.8),
        ("forms",      0.15, 0.5),
        ("footer",     0.20, 0.6),
        ("hero",       0.25, 0.7),
        ("images",     0.20, 0.5),
    ),
    distraction_filters=COMMON_DISTRACTIONS + TASK_SPECIFIC_DISTRACTIONS["find_information"],
    scan_pattern="f-pattern",
    nav_first_probability=0.6,
    search_use_probability=0.3,
    attention_capacity=7,       # Miller's 7±2
    focus_decay_ms=8000,
)

COMPLETE_ACTION_HIERARCHY = FocusHierarchy(
    task_type="complete_action",
    focus_areas=_areas(
        ("cta",        0.95, 3.0, True),
        ("forms",      0.90, 2.8, True),
        ("navigation", 0.80, 2.0, True),
        ("headings",   0.60, 1.5),
        ("content",    0.50, 1.2),
        ("hero",       0.40, 1.0),
        ("search",     0.20, 0.8),
        ("sidebar",    0.15, 0.5),
        ("footer",     0.10, 0.4),
        ("images",     0.10, 0.3),
    ),
    distraction_filters=COMMON_DISTRACTIONS + TASK_SPECIFIC_DISTRACTIONS["complete_action"],
    scan_pattern="spotted",
    nav_first_probability=0.75,
    search_use_probability=0.15,
    attention_capacity=5,
    focus_decay_ms=12000,
)

EXPLORE_HIERARCHY = FocusHierarchy(
    task_type="explore",
    focus_areas=_areas(
        ("hero",       0.85, 1.8, True),
        ("headings",   0.80, 1.5, True),
        ("navigation", 0.75, 1.5, True),
        ("content",    0.70, 1.3),
        ("images",     0.60, 1.2),
        ("cta",        0.55, 1.0),
        ("sidebar",    0.50, 1.0),
        ("search",     0.40, 0.8),
        ("forms",      0.30, 0.6),
        ("footer",     0.35, 0.7),
    ),
    # curious users are less put off by the usual distractions
    distraction_filters=tuple(
        replace(f, ignore_rate=f.ignore_rate * 0.6) for f in COMMON_DISTRACTIONS
    ),
    scan_pattern="z-pattern",
    nav_first_probability=0.5,
    search_use_probability=0.2,
    attention_capacity=10,
    focus_decay_ms=15000,
)

COMPARE_HIERARCHY = FocusHierarchy(
    task_type="compare",
    focus_areas=_areas(
        ("content",    0.90, 2.5, True),
        ("headings",   0.85, 2.0, True),
        ("navigation", 0.70, 1.8),
        ("cta",        0.60, 1.5),
        ("images",     0.50, 1.2),
        ("sidebar",    0.45, 1.0),
        ("search",     0.35, 0.9),
        ("forms",      0.25, 0.6),
        ("hero",       0.30, 0.7),
        ("footer",     0.15, 0.5),
    ),
    distraction_filters=COMMON_DISTRACTIONS + TASK_SPECIFIC_DISTRACTIONS["compare"],
    scan_pattern="exhaustive",
    nav_first_probability=0.65,
    search_use_probability=0.25,
    attention_capacity=8,
    focus_decay_ms=10000,
)

TROUBLESHOOT_HIERARCHY = FocusHierarchy(
    task_type="troubleshoot",
    focus_areas=_areas(
        ("search",     0.90, 3.0, True),
        ("navigation", 0.85, 2.5, True),
        ("content",    0.80, 2.0, True),
        ("headings",   0.75, 1.8),
        ("forms",      0.60, 1.5),
        ("footer",     0.55, 1.3),
        ("cta",        0.50, 1.2),
        ("sidebar",    0.40, 1.0),
        ("hero",       0.15, 0.4),
        ("images",     0.10, 0.3),
    ),
    # first match wins, so these only reach elements the common list misses
    distraction_filters=COMMON_DISTRACTIONS + TASK_SPECIFIC_DISTRACTIONS["troubleshoot"] + _filters(
        ("help",    0.1, "Help actively sought"),
        ("support", 0.1, "Support actively sought"),
        ("contact", 0.2, "Contact might help"),
    ),
    scan_pattern="spotted",
    nav_first_probability=0.8,
    search_use_probability=0.7,
    attention_capacity=5,
    focus_decay_ms=5000,
)

FOCUS_HIERARCHY_PRESETS = MappingProxyType({
    h.task_type: h for h in (
        FIND_INFORMATION_HIERARCHY, COMPLETE_ACTION_HIERARCHY, EXPLORE_HIERARCHY,
        COMPARE_HIERARCHY, TROUBLESHOOT_HIERARCHY,
    )
})

PRESET_DESCRIPTIONS = MappingProxyType({
    "find_information": "Looking for specific information (e.g., deadlines, requirements, contact info)",
    "complete_action":  "Trying to complete a specific action (e.g., apply, register, submit)",
    "explore":          "Browsing to learn about a site or organization",
    "compare":          "Comparing options, features, or plans",
    "troubleshoot":     "Trying to fix a problem or get help",
})


# ── Goal classification ────────────────────────────────────────────────────────

ACTION_KEYWORDS = (
    "apply", "submit", "register", "sign up", "signup", "create account",
    "enroll", "download", "buy", "purchase", "order", "book", "schedule",
    "complete", "fill out", "request", "subscribe", "join",
)
INFO_KEYWORDS = (
    "find", "where", "what", "when", "how", "deadline", "requirements",
    "contact", "address", "phone", "email", "hours", "cost", "price",
    "information", "details", "learn about", "discover",
)
COMPARE_KEYWORDS = (
    "compare", "vs", "versus", "difference", "better", "best",
    "which", "choose between", "options", "alternatives",
)
TROUBLESHOOT_KEYWORDS = (
    "help", "support", "problem", "issue", "error", "can't", "cannot",
    "won't", "doesn't work", "not working", "fix", "reset", "forgot",
    "trouble", "stuck",
)

# Checked in this order; first keyword hit wins.
_CLASSIFIER = (
    ("complete_action",  ACTION_KEYWORDS),
    ("troubleshoot",     TROUBLESHOOT_KEYWORDS),
    ("compare",          COMPARE_KEYWORDS),
    ("find_information", INFO_KEYWORDS),
)


def infer_task_type_from_goal(goal: str) -> str:
    """Keyword classifier; vague goals fall through to "explore"."""
    lowered = (goal or "").lower()
    for task_type, keywords in _CLASSIFIER:
        if any(k in lowered for k in keywords):
            return task_type
    return "explore"


def get_focus_hierarchy(task_type: str, presets=None) -> FocusHierarchy:
    presets = FOCUS_HIERARCHY_PRESETS if presets is None else presets
    return presets.get(task_type) or presets.get("find_information") or FIND_INFORMATION_HIERARCHY


# ── Element scoring ────────────────────────────────────────────────────────────

def _element_text(element: dict) -> str:
    parts = (
        element.get("text") or "",
        element.get("selector") or "",
        element.get("aria_label") or element.get("ariaLabel") or "",
    )
    return " ".join(p.lower() for p in parts)


def get_distraction_ignore_rate(element: dict, filters) -> float:
    """Ignore rate of the first filter whose pattern occurs in the element, else 0."""
    haystack = _element_text(element)
    for f in filters:
        if f.pattern.lower() in haystack:
            return f.ignore_rate
    return 0.0


def calculate_focus_priority(element: dict, hierarchy: FocusHierarchy) -> float:
    priority = 1.0

    area_name = element.get("area")
    if area_name:
        fa = hierarchy.area(area_name)
        if fa is None:
            priority *= UNKNOWN_AREA_PRIORITY
        else:
            priority *= fa.relevance_boost
            if fa.is_primary:
                priority *= PRIMARY_AREA_BOOST

    ignore_rate = get_distraction_ignore_rate(element, hierarchy.distraction_filters)
    if ignore_rate > 0:
        priority *= 1 - ignore_rate

    if element.get("is_relevant_to_goal") or element.get("isRelevantToGoal"):
        priority *= GOAL_RELEVANCE_BOOST

    return priority


def filter_by_attention(elements, hierarchy: FocusHierarchy) -> list:
    """
    Elements the persona actually notices.

    Sorted by area probability (stable, so page order breaks ties); an
    element is kept when its area probability is at least 0.5 or its area
    is primary; selection stops at ``attention_capacity``.
    """
    ordered = sorted(elements, key=lambda e: hierarchy.area_probability(e.get("area")), reverse=True)
    kept = []
    for element in ordered:
        if len(kept) >= hierarchy.attention_capacity:
            break
        fa = hierarchy.area(element.get("area"))
        probability = fa.probability if fa else UNMAPPED_AREA_PROBABILITY
        if probability >= ATTENTION_THRESHOLD or (fa is not None and fa.is_primary):
            kept.append(element)
    return kept


def get_scan_order(hierarchy: FocusHierarchy) -> list[str]:
    """Order in which page areas are scanned, per the hierarchy's scan pattern."""
    by_probability = sorted(hierarchy.focus_areas, key=lambda f: f.probability, reverse=True)
    primary   = [f.area for f in by_probability if f.is_primary]
    secondary = [f.area for f in by_probability if not f.is_primary]

    pattern = hierarchy.scan_pattern
    if pattern == "nav-first":
        order = ["navigation", *[a for a in primary if a != "navigation"], *secondary]
    elif pattern == "f-pattern":
        order = ["headings", "content", "navigation", *secondary]
    elif pattern == "z-pattern":
        order = ["hero", "navigation", "content", "cta", *secondary]
    elif pattern == "exhaustive":
        order = ["hero", "navigation", "headings", "content", "sidebar",
                 "forms", "cta", "footer", "images", "search"]
    else:  # spotted
        order = [*primary, *secondary]

    return list(dict.fromkeys(order))
