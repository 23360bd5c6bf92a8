"""
journeysim.yaml loading.

    version: 1
    goal: "Apply for admission"
    start_url: "https://example.edu"
    executor: driver.py          # module exposing create_executor(persona)
    reasoner: policy.py          # module exposing create_reasoner(persona)
    personas:
      - first-timer
      - name: elderly-user
        traits: {patience: 0.9}
    persona_files: [personas/*.py]
    expectations: [expectations/*.py]
    max_steps: 30
    max_time: 120
    concurrency: 2
    output:
      results: results.json
      report:  report.html

Relative paths and globs resolve against the config file's directory.
"""
from __future__ import annotations

import glob
from pathlib import Path

CONFIG_NAMES = ("journeysim.yaml", ".journeysim.yaml", "journeysim.yml")


def load_config(path: "str | Path | None" = None) -> dict:
    """
    Load and normalise a journeysim.yaml config file.

    Searches the current directory by default.  Raises FileNotFoundError
    if not found.  Returns a normalised dict with resolved glob patterns.
    """
    import yaml

    candidates = [path] if path else list(CONFIG_NAMES)
    config_path = None
    for c in candidates:
        if Path(c).exists():
            config_path = Path(c)
            break

    if config_path is None:
        searched = ", ".join(str(c) for c in candidates)
        raise FileNotFoundError(
            f"No journeysim config found.  Searched: {searched}\n"
            f"Run `journeysim init` to create one."
        )

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{config_path} must contain a mapping at the top level.")

    return _normalise_config(raw, config_path.parent)


def _expand(patterns, base_dir: Path) -> list:
    if isinstance(patterns, str):
        patterns = [patterns]
    files = []
    for pattern in patterns or []:
        matches = sorted(glob.glob(str(base_dir / pattern)))
        if not matches:
            # Try as literal path
            p = base_dir / pattern
            if p.exists():
                matches = [str(p)]
        files.extend(matches)
    return files


def _normalise_config(raw: dict, base_dir: Path) -> dict:
    """Resolve globs, apply defaults, validate required fields."""
    cfg = dict(raw)

    for key in ("goal", "start_url", "executor", "reasoner"):
        if not cfg.get(key):
            raise ValueError(f"Config is missing required key: '{key}'")

    personas = cfg.get("personas") or []
    if isinstance(personas, str):
        personas = [personas]
    cfg["_personas"] = []
    for entry in personas:
        if isinstance(entry, str):
            cfg["_personas"].append({"name": entry, "traits": None})
        elif isinstance(entry, dict) and entry.get("name"):
            traits = entry.get("traits")
            if traits is not None and not isinstance(traits, dict):
                raise ValueError(f"Persona {entry['name']!r}: 'traits' must be a mapping.")
            cfg["_personas"].append({"name": entry["name"], "traits": traits})
        else:
            raise ValueError(f"Invalid persona entry: {entry!r}")
    if not cfg["_personas"]:
        raise ValueError("No personas declared.  Check 'personas:' in config.")

    for key in ("max_steps", "concurrency"):
        if key in cfg and (not isinstance(cfg[key], int) or cfg[key] < 1):
            raise ValueError(f"'{key}' must be a positive integer, got {cfg[key]!r}")
    max_time = cfg.get("max_time")
    if max_time is not None and (not isinstance(max_time, (int, float)) or max_time <= 0):
        raise ValueError(f"'max_time' must be a positive number, got {max_time!r}")

    cfg.setdefault("max_steps", 50)
    cfg.setdefault("max_time", None)
    cfg.setdefault("concurrency", 2)
    cfg.setdefault("vision", False)
    cfg.setdefault("output", {})

    cfg["_persona_files"]     = _expand(cfg.get("persona_files"), base_dir)
    cfg["_expectation_files"] = _expand(cfg.get("expectations"), base_dir)
    cfg["_executor_file"]     = base_dir / cfg["executor"]
    cfg["_reasoner_file"]     = base_dir / cfg["reasoner"]
    cfg["_base_dir"] = base_dir
    return cfg
