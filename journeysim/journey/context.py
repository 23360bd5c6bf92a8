"""
Decision context handed to the reasoning collaborator each step.

The context is a plain dict with a fixed shape, so any reasoner (an LLM
client, a rule-based policy or a human at a prompt) can consume it.  It
also carries two pre-rendered prompts, ``system_prompt`` and
``step_prompt``, for reasoners that talk to a language model.
"""
from __future__ import annotations

from journeysim.persona.profile import describe_level


def build_decision_context(
    *,
    persona,
    profile,
    goal: str,
    task_type: str,
    step: int,
    state,
    perception,
    focused_elements: list,
    emotions,
    emotion_summary: str,
) -> dict:
    ctx = {
        "step":       step,
        "goal":       goal,
        "task_type":  task_type,
        "persona":    persona.descriptor(),
        "traits":     profile.traits.as_dict(),
        "attention_pattern": profile.attention_pattern,
        "decision_style":    profile.decision_style,
        "thresholds": profile.thresholds.to_dict(),
        "state": {
            "patience":          state.patience_remaining,
            "confusion":         state.confusion_level,
            "frustration":       state.frustration_level,
            "goal_progress":     state.goal_progress,
            "mood":              state.current_mood,
            "pages_visited":     list(state.memory.pages_visited),
            "actions_attempted": len(state.memory.actions_attempted),
            "choosing_defaults": state.decision_fatigue.choosing_defaults,
            "cognitive_system":  state.cognitive_mode.system,
        },
        "emotions":        emotions.to_dict(),
        "emotion_summary": emotion_summary,
        "page": {
            "url":      perception.url,
            "title":    perception.title,
            "elements": list(perception.elements),
            "inputs":   list(perception.inputs),
            "content":  perception.content,
        },
        "focused_elements": list(focused_elements),
        "screenshot":       perception.screenshot,
    }
    ctx["system_prompt"] = render_system_prompt(persona, profile, goal)
    ctx["step_prompt"]   = render_step_prompt(ctx)
    return ctx


def render_system_prompt(persona, profile, goal: str) -> str:
    t  = profile.traits
    th = profile.thresholds
    return f"""You are simulating a "{persona.name}" user navigating a website.

PERSONA DESCRIPTION: {persona.description}

COGNITIVE TRAITS:
- Patience: {t.patience:.2f} ({describe_level(t.patience, "impatient", "patient")})
- Risk Tolerance: {t.risk_tolerance:.2f} ({describe_level(t.risk_tolerance, "cautious", "bold")})
- Comprehension: {t.comprehension:.2f} ({describe_level(t.comprehension, "struggles with UI", "expert", low_cut=0.4)})
- Persistence: {t.persistence:.2f}
- Curiosity: {t.curiosity:.2f}
- Reading Tendency: {t.reading_tendency:.2f} ({describe_level(t.reading_tendency, "scans only", "reads everything", mid="selective reader")})

ATTENTION PATTERN: {profile.attention_pattern}
DECISION STYLE: {profile.decision_style}

GOAL: "{goal}"

RESPONSE FORMAT (JSON):
{{
  "phase": "perceive|comprehend|decide|execute|evaluate",
  "monologue": "Internal thought as this persona (first person)",
  "action": "click:text|hover:text|fill:label:value|navigate:url|null",
  "actionTarget": "description of what you're clicking/filling",
  "goalAchieved": boolean,
  "goalProgress": 0.0-1.0,
  "newConfusion": 0.0-1.0,
  "newFrustration": 0.0-1.0,
  "mood": "neutral|hopeful|confused|frustrated|defeated|relieved",
  "frictionDescription": "what caused confusion/frustration (if any)" | null,
  "frictionElement": "element that caused friction" | null
}}

ACTIONS:
- click:text - Click an element
- hover:text - Hover over an element to reveal dropdown menus
- fill:label:value - Type into an input, or pick an option from a select
- navigate:url - Go to a URL directly

ABANDONMENT THRESHOLDS:
- If patience drops below {th.patience_min}, give up
- If confusion exceeds {th.confusion_max}, give up
- If frustration exceeds {th.frustration_max}, give up

BEHAVIOR GUIDELINES:
1. PERCEIVE: Describe what you see on the page
2. COMPREHEND: Interpret UI based on your comprehension level (low = more confusion)
3. DECIDE: Choose action based on risk tolerance and goal relevance
4. Prefer elements you can SEE in the AVAILABLE ELEMENTS list
5. If comprehension is low, misinterpret ambiguous elements
6. If patience is low, get frustrated quickly with delays
7. Generate authentic inner monologue matching persona voice

Always respond with valid JSON."""


def _format_element(e: dict) -> str:
    role = f", role={e['role']}" if e.get("role") else ""
    return f'  - "{e.get("text", "")}" ({e.get("tag", "element")}{role})'


def _format_input(i: dict) -> str:
    desc = i.get("label") or i.get("placeholder") or i.get("name") or i.get("type") or "input"
    kind = i.get("type") or "text"
    if i.get("hidden") and i.get("trigger_text"):
        return f'  - "{desc}" ({kind}, custom dropdown - click "{i["trigger_text"]}" to open)'
    if i.get("hidden"):
        return f'  - "{desc}" ({kind}, hidden/custom UI)'
    if kind == "select" and i.get("options"):
        return (f'  - "{desc}" (select dropdown) → use fill:{desc}:OptionValue\n'
                f'      Options: {", ".join(i["options"])}')
    return f'  - "{desc}" ({kind})'


def render_step_prompt(ctx: dict) -> str:
    page  = ctx["page"]
    state = ctx["state"]

    elements = "\n".join(_format_element(e) for e in page["elements"]) or "  (no clickable elements detected)"
    inputs   = "\n".join(_format_input(i) for i in page["inputs"]) or "  (no form inputs detected)"
    content  = f"\nVISIBLE PAGE CONTENT:\n{page['content']}\n" if page["content"] else ""

    return f"""STEP {ctx["step"]}

CURRENT PAGE:
- URL: {page["url"]}
- Title: {page["title"]}
{content}
AVAILABLE ELEMENTS (clickable):
{elements}

FORM INPUTS (fillable):
{inputs}

CURRENT STATE:
- Patience: {state["patience"] * 100:.0f}%
- Confusion: {state["confusion"] * 100:.0f}%
- Frustration: {state["frustration"] * 100:.0f}%
- Goal Progress: {state["goal_progress"] * 100:.0f}%
- Mood: {state["mood"]}
- Feeling: {ctx["emotion_summary"]}
- Pages Visited: {len(state["pages_visited"])}
- Actions Attempted: {state["actions_attempted"]}

Based on the page content, AVAILABLE ELEMENTS, and FORM INPUTS above, what do you perceive, comprehend, and decide to do?
- To click: use "click:ElementText"
- To fill a form field: use "fill:FieldName:value"
- To navigate: use "navigate:URL"
Respond in JSON format."""
