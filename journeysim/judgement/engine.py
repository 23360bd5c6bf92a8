"""
Judgement engine: evaluates journey results against expectations using Z3.

Input:  journey results   JourneyResult objects, result dicts, a
                          comparison document or a path to either
        expectation files [Expectation subclasses]
Output: judgement JSON    { results: [{expectation, persona, satisfied, ...}] }
"""
from __future__ import annotations

import importlib.util
import json
import math
import re
import sys
from pathlib import Path

from z3 import BoolVal, Real, Solver, Z3Exception, is_rational_value, sat

from journeysim.cognition.state import ABANDONMENT_REASONS, JourneyResult
from journeysim.judgement.expectation import Expectation, FactNamespace
from journeysim.schema import COMPARISON_SCHEMA, JUDGEMENT_SCHEMA, RESULT_SCHEMA


# ── Facts ──────────────────────────────────────────────────────────────────────

def journey_facts(result: "JourneyResult | dict") -> dict:
    """Flatten a journey result into the numeric/bool facts expectations see."""
    if isinstance(result, dict):
        result = JourneyResult.from_dict(result)
    state   = result.final_state
    summary = result.summary
    facts = {
        "goal_achieved":          result.goal_achieved,
        "abandoned":              result.abandonment_reason is not None,
        "step_count":             result.step_count,
        "total_time":             result.total_time,
        "friction_count":         len(result.friction_points),
        "final_patience":         state.patience_remaining,
        "final_confusion":        state.confusion_level,
        "final_frustration":      state.frustration_level,
        "goal_progress":          state.goal_progress,
        "max_frustration":        summary.get("max_frustration", state.frustration_level),
        "avg_confusion":          summary.get("avg_confusion", state.confusion_level),
        "decisions_made":         state.decision_fatigue.decisions_made,
        "decision_fatigue":       state.decision_fatigue.fatigue_level,
        "choosing_defaults":      state.decision_fatigue.choosing_defaults,
        "backtrack_count":        state.memory.backtrack_count,
        "pages_visited":          len(state.memory.pages_visited),
        "errors_encountered":     len(state.memory.errors_encountered),
        "failed_actions":         sum(1 for a in state.memory.actions_attempted if not a.success),
        "time_in_system1_ms":     state.cognitive_mode.time_in_system1,
        "time_in_system2_ms":     state.cognitive_mode.time_in_system2,
        "emotional_event_count":  len(result.emotional_events),
        "abandonment_modifier":   summary.get("abandonment_modifier", 1.0),
    }
    for reason in ABANDONMENT_REASONS:
        facts[f"abandoned_for_{reason}"] = result.abandonment_reason == reason
    return facts


def _make_fact_vars(facts: dict) -> "tuple[dict, dict]":
    """
    Turn facts into Z3 terms.

    - bool      → BoolVal(v)
    - int/float → Real(name), pinned to its value through ``assignments``
                  so violation messages show the fact name, not the number
    """
    vars_ = {}
    assignments = {}
    for name, value in facts.items():
        safe = name.replace("-", "_").replace(".", "_")
        if isinstance(value, bool):
            vars_[safe] = BoolVal(value)
        elif isinstance(value, (int, float)):
            vars_[safe] = Real(safe)
            assignments[safe] = float(value)
    return vars_, assignments


# ── Evaluation ─────────────────────────────────────────────────────────────────

def evaluate_expectation(expectation: Expectation, result: "JourneyResult | dict") -> dict:
    """
    Check one expectation against one journey.

    Returns:
        {
            "expectation": str,
            "persona":     str,
            "satisfied":   bool,
            "score":       float,
            "constraints": [{label, expr, passed, antecedent_fired, target}],
            "violations":  [str],
        }
    """
    if isinstance(result, dict):
        result = JourneyResult.from_dict(result)
    fact_vars, assignments = _make_fact_vars(journey_facts(result))
    base = {
        "expectation": expectation.name,
        "description": expectation.description,
        "persona":     result.persona,
        "goal":        result.goal,
    }

    try:
        constraints = expectation.constraints(FactNamespace(fact_vars))
    except (AttributeError, TypeError) as e:
        return {**base, "satisfied": False, "score": 0.0, "constraints": [],
                "violations": [f"{type(e).__name__} in constraints(): {e}"], "error": str(e)}

    if not constraints:
        return {**base, "satisfied": True, "score": 1.0, "constraints": [], "violations": []}

    def make_solver():
        s = Solver()
        for var_name, val in assignments.items():
            v = math.copysign(1e9, val) if (math.isinf(val) or math.isnan(val)) else val
            s.add(Real(var_name) == v)
        return s

    passed, violations, results = 0, [], []
    for i, c in enumerate(constraints):
        label = getattr(c, "_repr", None) or repr(c) or f"constraint[{i}]"

        solver = make_solver()
        try:
            solver.add(c)
        except Z3Exception:
            # Not a boolean expression, e.g. a bare P.<missing fact>.
            results.append({"label": label, "expr": str(c), "passed": False,
                            "antecedent_fired": None, "target": None})
            violations.append(label)
            continue
        ok = solver.check() == sat

        antecedent = getattr(c, "_antecedent", None)
        antecedent_fired = None
        if antecedent is not None:
            ant_solver = make_solver()
            ant_solver.add(antecedent)
            antecedent_fired = ant_solver.check() == sat

        results.append({
            "label":            label,
            "expr":             str(c),
            "passed":           ok,
            "antecedent_fired": antecedent_fired,
            "target":           None if ok else _target_assignment(c, fact_vars, assignments),
        })
        if ok:
            passed += 1
        else:
            violations.append(label)

    return {
        **base,
        "satisfied":   not violations,
        "score":       round(passed / len(constraints), 4),
        "constraints": results,
        "violations":  violations,
    }


_FACT_NAME = re.compile(r"\b([a-z][a-z0-9_]*)\b")


def _target_assignment(constraint, fact_vars: dict, assignments: dict) -> "dict | None":
    """
    For a failing constraint, ask Z3 which fact values would have satisfied
    it, e.g. ``{"step_count": {"current": 22, "target": 15, "direction": "decrease"}}``.
    Returns None when no observed fact is involved or no model exists.
    """
    names = [m for m in _FACT_NAME.findall(str(constraint)) if m in assignments and m in fact_vars]
    if not names:
        return None
    s = Solver()
    s.add(constraint)
    if s.check() != sat:
        return None
    model  = s.model()
    target = {}
    for name in dict.fromkeys(names):
        value = model.eval(Real(name), model_completion=True)
        if not is_rational_value(value):
            continue
        wanted = float(value.as_fraction())
        current = assignments[name]
        if abs(wanted - current) < 1e-9:
            continue
        target[name] = {
            "current":   round(current, 4),
            "target":    round(wanted, 4),
            "direction": "decrease" if wanted < current else "increase",
        }
    return target or None


# ── Documents ──────────────────────────────────────────────────────────────────

def _load_json(source) -> dict:
    if isinstance(source, dict):
        return source
    if source == "-" or source is None:
        return json.load(sys.stdin)
    with open(Path(source)) as f:
        return json.load(f)


def collect_journeys(source) -> list:
    """
    Journey result dicts from a result document, a comparison document, a
    list of either, or JourneyResult objects.
    """
    if isinstance(source, JourneyResult):
        return [source.to_dict()]
    if isinstance(source, (list, tuple)):
        return [j for item in source for j in collect_journeys(item)]
    doc = _load_json(source)
    schema = doc.get("schema")
    if schema == RESULT_SCHEMA:
        return [doc]
    if schema == COMPARISON_SCHEMA:
        return [row["journey"] for row in doc["personas"] if "journey" in row]
    raise ValueError(
        f"Expected schema '{RESULT_SCHEMA}' or '{COMPARISON_SCHEMA}', got {schema!r}."
    )


def evaluate(journeys: list, expectations: list) -> dict:
    """Check every applicable expectation against every journey.  Writes nothing."""
    results = []
    for journey in journeys:
        persona = journey.get("persona", "")
        for expectation in expectations:
            if expectation.applies_to(persona):
                results.append(evaluate_expectation(expectation, journey))

    satisfied = sum(1 for r in results if r["satisfied"])
    return {
        "schema":  JUDGEMENT_SCHEMA,
        "results": results,
        "summary": {
            "total":     len(results),
            "satisfied": satisfied,
            "score":     round(sum(r["score"] for r in results) / max(len(results), 1), 4),
        },
    }


def run_judgement(source, expectation_files: list, output_path: "str | Path | None" = None) -> dict:
    """
    Top-level judgement runner.

    Args:
        source:            result/comparison JSON path, "-" (stdin), dict or list
        expectation_files: paths to Python files with Expectation subclasses
        output_path:       write judgement.json here; None → stdout
    """
    output = evaluate(collect_journeys(source), load_expectations(expectation_files))
    write_output(output, output_path)
    return output


def write_output(data: dict, output_path) -> None:
    """Write JSON to a file if output_path given, otherwise stdout."""
    text = json.dumps(data, indent=2)
    if output_path:
        Path(output_path).write_text(text)
    else:
        print(text)


def load_expectations(files: list) -> list:
    """Import each file and return instances of all Expectation subclasses defined in it."""
    expectations = []
    for path in files:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Expectation file not found: {path}")
        # Let expectation files import siblings without being a package.
        script_dir = str(path.parent)
        if script_dir not in sys.path:
            sys.path.insert(0, script_dir)
        spec = importlib.util.spec_from_file_location(f"_journeysim_expect_{path.stem}", path)
        mod  = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(mod)
        for attr in vars(mod).values():
            if (
                isinstance(attr, type)
                and issubclass(attr, Expectation)
                and attr is not Expectation
                and attr.__module__ == mod.__name__
            ):
                expectations.append(attr())
    return expectations
