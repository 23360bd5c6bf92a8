"""
Pipeline runner.

Two modes:

1. Config-driven (recommended):
       journeysim run                    # reads journeysim.yaml
       journeysim run --config ci.yaml   # explicit config
   journeysim loads the executor and reasoner modules named in the config,
   runs one journey per persona, judges the results against the
   expectation files, then writes results (and optionally an HTML report).

2. Programmatic (for library use or advanced scripting):
       compare_personas(personas, goal, start_url, executor_factory, reasoner_factory)
       run_journey(executor, reasoner, persona, goal, start_url)
"""
from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

from journeysim.config import load_config
from journeysim.journey.comparison import compare_personas
from journeysim.persona.presets import default_registry
from journeysim.schema import validate_comparison


# ── Collaborator modules ───────────────────────────────────────────────────────

def _load_module(script: Path, label: str):
    """Import a user Python file by path."""
    if not script.exists():
        raise FileNotFoundError(f"{label} file not found: {script}")

    # Add the script's directory to sys.path so it can import sibling modules
    # (e.g. a site map or page fixtures) without being a package.
    script_dir = str(script.parent)
    if script_dir not in sys.path:
        sys.path.insert(0, script_dir)

    name = f"_journeysim_{label}_{script.stem}"
    spec = importlib.util.spec_from_file_location(name, script)
    mod  = importlib.util.module_from_spec(spec)
    # Register in sys.modules before exec so dataclasses defined in the file
    # can find their own module namespace.
    sys.modules[name] = mod
    try:
        spec.loader.exec_module(mod)
    except Exception:
        del sys.modules[name]
        raise
    return mod


def load_factory(script: Path, label: str, attr: str):
    """Return ``attr`` from a user module, e.g. create_executor from driver.py."""
    mod = _load_module(Path(script), label)
    factory = getattr(mod, attr, None)
    if not callable(factory):
        raise RuntimeError(
            f"{label.capitalize()} file {script} has no {attr}() function.\n"
            f"Add `def {attr}(persona): ...` returning a fresh {label} per journey."
        )
    return factory


# ── Config-driven pipeline ─────────────────────────────────────────────────────

def _resolve_output_path(path: "str | Path | None", base_dir: Path) -> "str | None":
    """Resolve an output path relative to the config's base directory.

    Absolute paths and None are returned as-is.  Relative paths (e.g. from
    the yaml ``output:`` block) are joined against base_dir so that
    ``journeysim run`` works regardless of the working directory.
    """
    if not path:
        return None
    p = Path(path)
    if p.is_absolute():
        return str(p)
    return str(base_dir / p)


def run_from_config(
    config: "dict | str | Path | None" = None,
    persona_override: "list[str] | None" = None,
    output_path: "str | Path | None" = None,
    verbose: bool = False,
) -> dict:
    """
    Run the full pipeline as declared in a journeysim.yaml config file.

    - Runs one journey per persona (at most ``concurrency`` at once)
    - Judges every journey against the expectation files, if any
    - Writes the comparison document (with a ``judgement`` section) and
      the optional HTML report

    Args:
        config:           path to config file, or already-loaded dict, or None (auto-discover)
        persona_override: run only these personas (ignores the config list)
        output_path:      write results JSON here; None → output.results or stdout
        verbose:          print progress to stderr
    """
    from journeysim.judgement.engine import collect_journeys, evaluate, load_expectations, write_output

    cfg = config if isinstance(config, dict) else load_config(config)
    base_dir = cfg["_base_dir"]
    out_cfg  = cfg.get("output") or {}

    registry = default_registry()
    if cfg["_persona_files"]:
        registry = registry.with_files(cfg["_persona_files"])

    personas = [(p["name"], p["traits"]) for p in cfg["_personas"]]
    if persona_override:
        personas = [(name, None) for name in persona_override]
    for name, _ in personas:
        registry.get(name)

    executor_factory = load_factory(cfg["_executor_file"], "executor", "create_executor")
    reasoner_factory = load_factory(cfg["_reasoner_file"], "reasoner", "create_reasoner")

    if verbose:
        print(f"[journeysim] goal: {cfg['goal']}  ({cfg['start_url']})", file=sys.stderr)

    output = compare_personas(
        personas,
        cfg["goal"],
        cfg["start_url"],
        executor_factory,
        reasoner_factory,
        max_concurrency=cfg["concurrency"],
        max_steps=cfg["max_steps"],
        max_time=cfg["max_time"],
        vision=cfg["vision"],
        registry=registry,
        verbose=verbose,
    )
    validate_comparison(output)

    if cfg["_expectation_files"]:
        expectations = load_expectations(cfg["_expectation_files"])
        if verbose:
            print(f"[journeysim] judging against {len(expectations)} expectation(s)", file=sys.stderr)
        output["judgement"] = evaluate(collect_journeys(output), expectations)

    raw_out = output_path or out_cfg.get("results")
    write_output(output, _resolve_output_path(raw_out, base_dir))

    # ── HTML report ────────────────────────────────────────────────────────────
    report_path = _resolve_output_path(out_cfg.get("report"), base_dir)
    if report_path:
        try:
            from journeysim.report.html import generate_report
            generate_report(output, report_path)
            if verbose:
                print(f"[journeysim] report: {report_path}", file=sys.stderr)
        except (OSError, KeyError, ValueError) as e:
            print(f"[journeysim] report skipped: {e}", file=sys.stderr)

    return output


def run_failed(output: dict) -> bool:
    """True when any journey missed its goal or any expectation was violated."""
    if output["summary"]["failure_count"]:
        return True
    judgement = output.get("judgement")
    return bool(judgement) and judgement["summary"]["satisfied"] < judgement["summary"]["total"]
