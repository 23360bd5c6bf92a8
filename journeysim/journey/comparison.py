"""
Multi-persona comparison.

Runs the same goal with several personas and summarises who struggled,
where, and why.  Journeys are independent: each gets a fresh executor and
reasoner from the factories and its own orchestrator, so the only thing
they share is the read-only persona registry.  At most ``max_concurrency``
journeys run at once.
"""
from __future__ import annotations

import asyncio
import sys
import time
from datetime import datetime, timezone

from journeysim.journey.orchestrator import JourneyOrchestrator, JourneyRequest
from journeysim.persona.presets import default_registry
from journeysim.schema import COMPARISON_SCHEMA, RESULT_SCHEMA

MAX_FRICTION_TEXT = 100


def _persona_spec(entry) -> "tuple[str, dict | None]":
    if isinstance(entry, str):
        return entry, None
    if isinstance(entry, dict):
        return entry["name"], entry.get("traits")
    name, overrides = entry
    return name, overrides


def _row(result, persona) -> dict:
    state = result.final_state
    return {
        "persona":         result.persona,
        "description":     persona.description,
        "tech_level":      persona.tech_level,
        "device":          persona.device,
        "success":         result.goal_achieved,
        "total_time":      result.total_time,
        "step_count":      result.step_count,
        "friction_count":  len(result.friction_points),
        "friction_points": [
            f"{fp.type}: {fp.monologue[:MAX_FRICTION_TEXT]}" for fp in result.friction_points
        ],
        "cognitive": {
            "patience_remaining": state.patience_remaining,
            "frustration_level":  state.frustration_level,
            "confusion_level":    state.confusion_level,
            "abandonment_reason": result.abandonment_reason,
            "backtrack_count":    state.memory.backtrack_count,
            "monologue":          list(result.full_monologue),
        },
        "journey": {"schema": RESULT_SCHEMA, **result.to_dict()},
    }


def _error_row(name: str, persona, exc: BaseException) -> dict:
    return {
        "persona":         name,
        "description":     getattr(persona, "description", "Unknown"),
        "tech_level":      getattr(persona, "tech_level", "unknown"),
        "device":          getattr(persona, "device", "unknown"),
        "success":         False,
        "total_time":      0.0,
        "step_count":      0,
        "friction_count":  1,
        "friction_points": [f"Error: {exc}"],
        "cognitive": {
            "patience_remaining": 0.0,
            "frustration_level":  1.0,
            "confusion_level":    1.0,
            "abandonment_reason": "timeout",
            "backtrack_count":    0,
            "monologue":          [f"Error during journey: {exc}"],
        },
        "error": str(exc),
    }


async def compare_personas_async(
    personas,
    goal: str,
    start_url: str,
    executor_factory,
    reasoner_factory,
    max_concurrency: int = 2,
    max_steps: int = 20,
    max_time: "float | None" = 120,
    vision: bool = False,
    registry=None,
    verbose: bool = False,
    **orchestrator_options,
) -> dict:
    """
    Run one journey per persona and build a comparison document.

    ``personas`` holds names, ``(name, overrides)`` pairs or
    ``{"name": ..., "traits": {...}}`` dicts.  The factories are called with
    the persona name and must return a fresh executor / reasoner.
    """
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be at least 1, got {max_concurrency}")
    registry  = registry or default_registry()
    specs     = [_persona_spec(p) for p in personas]
    semaphore = asyncio.Semaphore(max_concurrency)
    started   = time.monotonic()

    if verbose:
        print(f"[journeysim] comparing {len(specs)} persona(s), concurrency {max_concurrency}",
              file=sys.stderr)

    async def one(name: str, overrides):
        async with semaphore:
            persona = registry.get(name) if name in registry else None
            try:
                orch = JourneyOrchestrator(
                    executor_factory(name), reasoner_factory(name),
                    registry=registry, verbose=verbose, **orchestrator_options,
                )
                request = JourneyRequest(
                    persona=name, goal=goal, start_url=start_url, trait_overrides=overrides,
                    max_steps=max_steps, max_time=max_time, vision=vision,
                )
                resolved = orch.resolve_persona(request)
                result = await orch.run(request)
            except Exception as e:
                print(f"[journeysim] {name}: ERROR - {e}", file=sys.stderr)
                return _error_row(name, persona, e)
            if verbose:
                status = "SUCCESS" if result.goal_achieved else f"ABANDONED ({result.abandonment_reason})"
                print(f"[journeysim] {name}: {status} | patience "
                      f"{result.final_state.patience_remaining:.0%}, friction {len(result.friction_points)}",
                      file=sys.stderr)
            return _row(result, resolved)

    rows = await asyncio.gather(*(one(name, overrides) for name, overrides in specs))

    return {
        "schema":          COMPARISON_SCHEMA,
        "url":             start_url,
        "goal":            goal,
        "timestamp":       datetime.now(timezone.utc).isoformat(),
        "duration":        round(time.monotonic() - started, 3),
        "personas":        list(rows),
        "summary":         summarise(rows),
        "recommendations": recommend(rows),
    }


def compare_personas(*args, **kwargs) -> dict:
    """Synchronous wrapper around ``compare_personas_async``."""
    return asyncio.run(compare_personas_async(*args, **kwargs))


# ── Analysis ───────────────────────────────────────────────────────────────────

def common_friction(rows) -> list:
    """Friction descriptions reported by more than one persona, most shared first."""
    counts: dict = {}
    for r in rows:
        for fp in set(r["friction_points"]):
            counts[fp] = counts.get(fp, 0) + 1
    shared = sorted((item for item in counts.items() if item[1] > 1), key=lambda item: -item[1])
    return [fp for fp, _ in shared[:5]]


def summarise(rows) -> dict:
    successes = [r for r in rows if r["success"]]
    by_time     = sorted(successes, key=lambda r: r["total_time"])
    by_friction = sorted(rows, key=lambda r: -r["friction_count"])
    avg_time = sum(r["total_time"] for r in successes) / len(successes) if successes else 0.0
    return {
        "total_personas":         len(rows),
        "success_count":          len(successes),
        "failure_count":          len(rows) - len(successes),
        "fastest_persona":        by_time[0]["persona"] if by_time else "N/A",
        "slowest_persona":        by_time[-1]["persona"] if by_time else "N/A",
        "most_friction":          by_friction[0]["persona"] if by_friction else "N/A",
        "least_friction":         by_friction[-1]["persona"] if by_friction else "N/A",
        "avg_completion_time":    round(avg_time, 3),
        "common_friction_points": common_friction(rows),
    }


def _mean(values) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def recommend(rows) -> list:
    recs = []
    failed = [r for r in rows if not r["success"]]

    for reason, advice in (
        ("patience",    "consider shorter flows"),
        ("frustration", "review error messages and feedback"),
        ("confusion",   "improve UI clarity and labeling"),
    ):
        hit = [r["persona"] for r in failed if r["cognitive"]["abandonment_reason"] == reason]
        if hit:
            recs.append(
                f"{len(hit)} persona(s) abandoned due to {reason.upper()}: {', '.join(hit)} - {advice}"
            )

    worst = max(rows, key=lambda r: r["friction_count"], default=None)
    if worst is not None and worst["friction_count"] > 0:
        recs.append(
            f'"{worst["persona"]}" experienced the most friction ({worst["friction_count"]} points, '
            f'{worst["cognitive"]["frustration_level"]:.0%} frustration)'
        )

    beginners = [r for r in rows if r["tech_level"] == "beginner"]
    experts   = [r for r in rows if r["tech_level"] == "expert"]
    if beginners and experts:
        beginner_time = _mean(r["total_time"] for r in beginners)
        expert_time   = _mean(r["total_time"] for r in experts)
        if expert_time > 0 and beginner_time > expert_time * 2:
            recs.append(
                f"Beginners take {beginner_time / expert_time:.1f}x longer than experts - add more guidance"
            )

    mobile  = [r for r in rows if r["device"] == "mobile"]
    desktop = [r for r in rows if r["device"] == "desktop"]
    if mobile and desktop:
        mobile_friction  = _mean(r["friction_count"] for r in mobile)
        desktop_friction = _mean(r["friction_count"] for r in desktop)
        if mobile_friction > desktop_friction * 1.5:
            if desktop_friction > 0:
                recs.append(
                    f"Mobile users experience {mobile_friction / desktop_friction:.1f}x more friction"
                    " - review mobile UX"
                )
            else:
                recs.append("Only mobile users experienced friction - review mobile UX")

    shared = common_friction(rows)
    if shared:
        recs.append(f"Common friction across personas: {'; '.join(shared[:2])}")

    backtrackers = [r for r in rows if r["cognitive"]["backtrack_count"] > 3]
    if backtrackers:
        recs.append(
            f"{len(backtrackers)} persona(s) backtracked frequently - navigation may be confusing"
        )

    if not recs:
        recs.append("All personas completed the journey without significant cognitive barriers")
    return recs


# ── Text report ────────────────────────────────────────────────────────────────

_RULE = "+-------------------+--------+--------+-------+----------+----------+----------+"


def format_comparison_report(comparison: dict) -> str:
    summary = comparison["summary"]
    lines = [
        "",
        "=" * 80,
        "COGNITIVE PERSONA COMPARISON REPORT".center(80),
        "=" * 80,
        "",
        f"URL: {comparison['url']}",
        f"Goal: {comparison['goal']}",
        f"Total Duration: {comparison['duration']:.1f}s",
        f"Timestamp: {comparison['timestamp']}",
        "",
        _RULE,
        "| Persona           | Result | Time   | Steps | Patience | Frustrat | Friction |",
        _RULE,
    ]
    for r in comparison["personas"]:
        cog         = r["cognitive"]
        result      = "PASS" if r["success"] else "FAIL"
        elapsed     = "{:.0f}s".format(r["total_time"])
        patience    = "{:.0%}".format(cog["patience_remaining"])
        frustration = "{:.0%}".format(cog["frustration_level"])
        lines.append(
            f"| {r['persona'][:17]:<17} | {result:<6} | {elapsed:<6} | {r['step_count']:<5} "
            f"| {patience:<8} | {frustration:<8} | {r['friction_count']:<8} |"
        )
    lines += [_RULE, ""]

    abandoned = [r for r in comparison["personas"] if not r["success"]]
    if abandoned:
        lines += ["ABANDONMENT ANALYSIS", "-" * 60]
        for r in abandoned:
            reason = r["cognitive"]["abandonment_reason"] or "unknown"
            lines.append(f"  {r['persona']}: {reason.upper()}")
            monologue = r["cognitive"]["monologue"]
            if monologue:
                lines.append(f'    Last thought: "{monologue[-1][:80]}..."')
        lines.append("")

    total = summary["total_personas"]
    rate  = summary["success_count"] / total if total else 0.0
    lines += [
        "SUMMARY",
        "-" * 60,
        f"  Total Personas: {total}",
        f"  Success Rate: {summary['success_count']}/{total} ({rate:.0%})",
        f"  Avg Completion Time: {summary['avg_completion_time']:.1f}s",
        f"  Fastest: {summary['fastest_persona']}",
        f"  Slowest: {summary['slowest_persona']}",
        f"  Most Friction: {summary['most_friction']}",
        f"  Least Friction: {summary['least_friction']}",
        "",
        "RECOMMENDATIONS",
        "-" * 60,
    ]
    lines += [f"  {rec}" for rec in comparison["recommendations"]]
    lines.append("")
    return "\n".join(lines)
