"""
journeysim CLI

Primary usage, driven by a journeysim.yaml config file:

    journeysim run                        # text comparison report on stderr
    journeysim run --config path/to/journeysim.yaml
    journeysim run --persona first-timer  # run one persona (repeatable)
    journeysim run --out results.json     # save results to file

Other subcommands (for one-off use, no config needed):

    journeysim personas                   # list built-in personas
    journeysim profile elderly-user --trait patience=0.2
    journeysim judge --results results.json --expectations expectations/*.py
    journeysim report --results results.json
    journeysim init [DIR]                 # scaffold a new project

Exit codes: 0 all journeys reached their goal and every expectation held,
1 configuration or input error, 2 a journey failed or an expectation was
violated.
"""

import argparse
import json
import sys
from pathlib import Path


def cmd_run(args):
    """
    Run every persona in journeysim.yaml through the journey, judge the
    results, and write them to stdout (or --out file).
    """
    from journeysim.journey.comparison import format_comparison_report
    from journeysim.runner import run_failed, run_from_config

    try:
        results = run_from_config(
            config=args.config,
            persona_override=args.persona or None,
            output_path=args.out,
            verbose=args.verbose,
        )
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except (ValueError, RuntimeError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if not args.quiet:
        print(format_comparison_report(results), file=sys.stderr)
        if results.get("judgement"):
            _print_judgement(results["judgement"], file=sys.stderr)

    return 2 if run_failed(results) else 0


def cmd_personas(args):
    """List available personas (built-in plus any --persona-file)."""
    from journeysim.persona.presets import default_registry

    try:
        registry = default_registry()
        if args.persona_file:
            registry = registry.with_files(args.persona_file)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    names = registry.accessibility_names() if args.accessibility else registry.names()
    if args.json:
        print(json.dumps([registry.get(n).descriptor() for n in names], indent=2))
        return 0
    for name in names:
        p = registry.get(name)
        print(f"  {name:24} {p.tech_level:13} {p.device:8} {p.description}")
    return 0


def _parse_trait_args(pairs) -> dict:
    traits = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep:
            raise ValueError(f"--trait expects NAME=VALUE, got {pair!r}")
        try:
            traits[key.strip()] = float(value)
        except ValueError:
            raise ValueError(f"--trait {key}: {value!r} is not a number") from None
    return traits


def cmd_profile(args):
    """Print the derived cognitive profile and initial emotional state of a persona."""
    from journeysim.cognition.emotions import (
        create_emotional_config,
        create_initial_emotional_state,
        describe_emotional_state,
    )
    from journeysim.persona.presets import default_registry
    from journeysim.persona.profile import derive_profile

    try:
        persona = default_registry().resolve(args.persona, _parse_trait_args(args.trait))
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    traits  = persona.trait_vector()
    profile = derive_profile(traits, time_limit=args.time_limit)
    config  = create_emotional_config(traits)
    initial = create_initial_emotional_state(traits)
    print(json.dumps({
        "persona":   persona.descriptor(),
        "traits":    traits.as_dict(),
        "profile":   profile.to_dict(),
        "emotions": {
            "initial":     initial.to_dict(),
            "description": describe_emotional_state(initial),
            "decay_rate":  config.decay_rate,
            "sensitivity": config.sensitivity,
        },
    }, indent=2))
    return 0


def cmd_judge(args):
    """
    Run judgement only.  Reads a result or comparison JSON from stdin or
    --results file.
    """
    from journeysim.judgement.engine import run_judgement

    source = args.results if args.results else "-"
    try:
        results = run_judgement(source, args.expectations, output_path=args.out)
    except (FileNotFoundError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    if not args.quiet:
        _print_judgement(results, file=sys.stderr)
    summary = results["summary"]
    return 0 if summary["satisfied"] == summary["total"] else 2


def cmd_report(args):
    """Generate an HTML report from results JSON (stdin or --results file)."""
    from journeysim.report.html import generate_report

    if args.results and args.results != "-":
        with open(args.results) as f:
            results = json.load(f)
    else:
        results = json.load(sys.stdin)

    out_path = args.out or "report.html"
    try:
        generate_report(results, out_path)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    print(f"Report written to {out_path}", file=sys.stderr)
    return 0


def cmd_init(args):
    """Scaffold a new journeysim project."""
    from journeysim.scaffold import init_project
    target = Path(args.dir or ".")
    init_project(target)
    return 0


def _print_judgement(results: dict, file=sys.stderr) -> None:
    summary = results.get("summary", {})
    for r in results.get("results", []):
        sym  = "✓" if r["satisfied"] else "✗"
        viol = f" - {r['violations'][0]}" if r.get("violations") else ""
        print(f"  {sym} {r['persona']:20} {r['expectation']:28} score={r['score']:.3f}{viol}", file=file)
    print(f"\n  {summary.get('satisfied', 0)}/{summary.get('total', 0)} expectations satisfied\n", file=file)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="journeysim",
        description=(
            "Cognitive user journey simulation: watch personas with patience,\n"
            "confusion and emotions try to reach a goal on your site.\n\n"
            "Quickstart:\n"
            "  journeysim init        scaffold a new project\n"
            "  journeysim run         run every persona (reads journeysim.yaml)"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ── run ───────────────────────────────────────────────────────────────────
    p_run = sub.add_parser(
        "run",
        help="Run the persona comparison (reads journeysim.yaml)",
    )
    p_run.add_argument(
        "--config", metavar="FILE",
        help="Config file (default: journeysim.yaml in current directory)",
    )
    p_run.add_argument(
        "--persona", metavar="NAME", action="append",
        help="Run only this persona (repeatable; overrides the config list)",
    )
    p_run.add_argument(
        "--out", metavar="FILE",
        help="Save results JSON here (default: output.results or stdout)",
    )
    p_run.add_argument("--quiet",   action="store_true", help="Suppress all human output")
    p_run.add_argument("--verbose", action="store_true", help="Print per-step progress to stderr")
    p_run.set_defaults(func=cmd_run)

    # ── personas ──────────────────────────────────────────────────────────────
    p_personas = sub.add_parser("personas", help="List available personas")
    p_personas.add_argument("--accessibility", action="store_true",
                            help="Only list accessibility personas")
    p_personas.add_argument("--persona-file", nargs="+", metavar="FILE",
                            help="Also load Persona subclasses from these files")
    p_personas.add_argument("--json", action="store_true", help="Output as JSON")
    p_personas.set_defaults(func=cmd_personas)

    # ── profile ───────────────────────────────────────────────────────────────
    p_profile = sub.add_parser("profile", help="Show a persona's derived cognitive profile")
    p_profile.add_argument("persona", metavar="NAME")
    p_profile.add_argument("--trait", action="append", metavar="NAME=VALUE",
                           help="Override a trait (repeatable)")
    p_profile.add_argument("--time-limit", type=float, metavar="SECONDS",
                           help="Journey time limit to derive thresholds for")
    p_profile.set_defaults(func=cmd_profile)

    # ── judge ─────────────────────────────────────────────────────────────────
    p_judge = sub.add_parser(
        "judge",
        help="Evaluate expectations against saved results",
    )
    p_judge.add_argument(
        "--results", metavar="FILE",
        help="Result or comparison JSON file; omit or use '-' to read from stdin",
    )
    p_judge.add_argument("--expectations", required=True, nargs="+", metavar="FILE",
                         help="Expectation Python files")
    p_judge.add_argument("--out",   metavar="FILE",
                         help="Save judgement JSON here (default: stdout)")
    p_judge.add_argument("--quiet", action="store_true")
    p_judge.set_defaults(func=cmd_judge)

    # ── report ────────────────────────────────────────────────────────────────
    p_report = sub.add_parser(
        "report",
        help="Generate HTML report from results JSON",
    )
    p_report.add_argument(
        "--results", metavar="FILE",
        help="Results JSON file; omit or use '-' to read from stdin",
    )
    p_report.add_argument("--out", metavar="FILE", help="Output HTML (default: report.html)")
    p_report.set_defaults(func=cmd_report)

    # ── init ──────────────────────────────────────────────────────────────────
    p_init = sub.add_parser("init", help="Scaffold a new journeysim project in DIR (default: cwd)")
    p_init.add_argument("dir", nargs="?", metavar="DIR")
    p_init.set_defaults(func=cmd_init)

    args = parser.parse_args(argv)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
