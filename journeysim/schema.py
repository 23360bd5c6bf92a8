"""
JSON schema ids and validators for the journeysim interchange format.

Three documents come out of a run:

  result.json       → one journey (persona × goal) from the orchestrator
  comparison.json   → several personas on the same goal, plus a summary
  judgement.json    → expectations evaluated against journey results (Z3)

Each document carries a "schema" field so tools can verify compatibility.
"""

RESULT_SCHEMA     = "journeysim.result.v1"
COMPARISON_SCHEMA = "journeysim.comparison.v1"
JUDGEMENT_SCHEMA  = "journeysim.judgement.v1"

_RESULT_KEYS = ("persona", "goal", "goal_achieved", "final_state", "step_count", "summary")


def validate_result(doc: dict) -> None:
    """Raise ValueError if a journey result document is malformed."""
    if doc.get("schema") != RESULT_SCHEMA:
        raise ValueError(
            f"Expected schema '{RESULT_SCHEMA}', got {doc.get('schema')!r}."
        )
    missing = [k for k in _RESULT_KEYS if k not in doc]
    if missing:
        raise ValueError(f"Journey result is missing: {', '.join(missing)}")
    if not doc["goal_achieved"] and not doc.get("abandonment_reason"):
        raise ValueError("A journey that did not reach its goal must carry an abandonment_reason.")


def validate_comparison(doc: dict) -> None:
    """Raise ValueError if a comparison document is malformed."""
    if doc.get("schema") != COMPARISON_SCHEMA:
        raise ValueError(
            f"Expected schema '{COMPARISON_SCHEMA}', got {doc.get('schema')!r}."
        )
    if not isinstance(doc.get("personas"), list):
        raise ValueError("comparison.json must contain a 'personas' list.")
    if "summary" not in doc:
        raise ValueError("comparison.json must contain a 'summary' object.")


def validate_judgement(doc: dict) -> None:
    if doc.get("schema") != JUDGEMENT_SCHEMA:
        raise ValueError(
            f"Expected schema '{JUDGEMENT_SCHEMA}', got {doc.get('schema')!r}."
        )
    if not isinstance(doc.get("results"), list):
        raise ValueError("judgement.json must contain a 'results' list.")
