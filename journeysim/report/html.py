"""
HTML report generator.

Produces a self-contained single-file report from a comparison document
(or a single journey result), styled as per-persona cards with avatar,
cognitive meters, expectation constraints, and a step list.

Clicking a step row shows that step's inner monologue, action and
emotional state in the middle panel.  Clicking the same row again (or
pressing Escape) returns to the journey overview.
"""
from __future__ import annotations
import json
from pathlib import Path

from journeysim.schema import COMPARISON_SCHEMA, RESULT_SCHEMA


# DiceBear avatar styles per persona index (cycles if more than 10 personas)
_AVATAR_STYLES = [
    ("lorelei",     "ffd6e0"),
    ("adventurer",  "c2d4f0"),
    ("avataaars",   "d4f0c2"),
    ("bottts",      "f0e6c2"),
    ("croodles",    "e6c2f0"),
    ("fun-emoji",   "c2f0e6"),
    ("icons",       "f0c2d4"),
    ("micah",       "c2d4f0"),
    ("miniavs",     "f0d4c2"),
    ("personas",    "d4c2f0"),
]

_METERS = (
    ("patience",    "patience_remaining", "var(--pass)"),
    ("frustration", "frustration_level",  "var(--fail)"),
    ("confusion",   "confusion_level",    "var(--orange)"),
)


def _avatar_url(name: str, idx: int) -> str:
    style, bg = _AVATAR_STYLES[idx % len(_AVATAR_STYLES)]
    return (f"https://api.dicebear.com/9.x/{style}/svg"
            f"?seed={name}&backgroundColor={bg}&radius=50")


def _html_attr(s: str) -> str:
    """Escape a string for use in an HTML attribute value."""
    return s.replace("&", "&amp;").replace('"', "&quot;").replace("'", "&#39;")

def _html_escape(s: str) -> str:
    """Escape a string for use in HTML text content."""
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _journeys(doc: dict) -> "tuple[list[dict], dict]":
    """(journey dicts, comparison doc) for either document type."""
    schema = doc.get("schema")
    if schema == RESULT_SCHEMA:
        return [doc], {"url": doc.get("start_url", ""), "goal": doc.get("goal", ""),
                       "recommendations": [], "summary": {}}
    if schema == COMPARISON_SCHEMA:
        return [row["journey"] for row in doc.get("personas", []) if "journey" in row], doc
    raise ValueError(
        f"Expected schema '{RESULT_SCHEMA}' or '{COMPARISON_SCHEMA}', got {schema!r}."
    )


def _constraints_html(judged: list) -> str:
    if not judged:
        return '<div class="muted-note">No expectations for this persona.</div>'
    out = ""
    for r in judged:
        for c in r.get("constraints", []):
            unexercised = c.get("antecedent_fired") is False
            cls = "c-pass c-unexercised" if unexercised else "c-pass" if c["passed"] else "c-fail"
            sym = "–" if unexercised else "✓" if c["passed"] else "✗"
            expr = c.get("expr") or ""
            out += (
                f'<div class="constraint {cls}">'
                f'<span class="c-status">{sym}</span>'
                f'<span class="c-body">'
                f'<span class="c-label">{_html_escape(c["label"])}</span>'
                f'<span class="c-expr">{_html_escape(expr)}</span>'
                f'</span>'
                f'<span class="c-count">{_html_escape(r["expectation"])}</span>'
                f'</div>'
            )
    return out


def _meters_html(state: dict) -> str:
    rows = ""
    for label, key, colour in _METERS:
        value = float(state.get(key, 0.0))
        rows += (
            f'<div class="meter"><span class="m-label">{label}</span>'
            f'<span class="m-track"><span class="m-fill" style="width:{value:.0%};background:{colour}"></span></span>'
            f'<span class="m-value">{value:.0%}</span></div>'
        )
    return rows


def _overview_html(journey: dict, judged: list) -> str:
    friction = journey.get("friction_points", [])
    friction_rows = "".join(
        f'<li><b>step {fp["step"]}</b> {_html_escape(fp["type"])}: '
        f'{_html_escape(fp.get("description") or fp["monologue"][:120])}</li>'
        for fp in friction
    )
    friction_html = (
        f'<ul class="friction">{friction_rows}</ul>' if friction_rows
        else '<div class="muted-note">No friction points.</div>'
    )
    message = journey.get("abandonment_message") or ""
    return (
        f'<div class="meters">{_meters_html(journey["final_state"])}</div>'
        + (f'<div class="abandon-msg">“{_html_escape(message)}”</div>' if message else "")
        + f'<div class="section-label">Friction</div>{friction_html}'
        + f'<details class="constraints-details" open><summary class="constraints-summary">'
          f'{sum(len(r.get("constraints", [])) for r in judged)} constraints</summary>'
          f'<div class="constraints">{_constraints_html(judged)}</div></details>'
    )


def generate_report(results: dict, output_path: "str | Path") -> None:
    journeys, comparison = _journeys(results)
    judgement = results.get("judgement") or {}
    judged_by_persona: dict = {}
    for r in judgement.get("results", []):
        judged_by_persona.setdefault(r["persona"], []).append(r)

    n_pass = sum(1 for j in journeys if j["goal_achieved"])
    n_fail = len(journeys) - n_pass
    j_summary = judgement.get("summary", {})

    overviews = {}
    cards_html = ""
    for pi, journey in enumerate(journeys):
        name    = journey["persona"]
        meta    = journey.get("persona_meta") or {}
        judged  = judged_by_persona.get(name, [])
        ok      = journey["goal_achieved"] and all(r["satisfied"] for r in judged)
        verdict = "reached goal" if journey["goal_achieved"] else (journey.get("abandonment_reason") or "failed")
        overviews[pi] = _overview_html(journey, judged)

        rows = ""
        for step in journey.get("steps", []):
            action  = step.get("action") or ""
            cls     = "warn" if step.get("emotional_warning") else "pass"
            payload = {
                "step":      step["step"],
                "phase":     step["phase"],
                "monologue": step["monologue"],
                "action":    action,
                "emotion":   (step.get("emotions") or {}).get("dominant", ""),
                "state":     step.get("state") or {},
                "warning":   step.get("emotional_warning") or "",
            }
            rows += (
                f'<div class="step-row {cls}" data-card="{pi}" '
                f'data-step="{_html_attr(json.dumps(payload))}">'
                f'<div class="ball {cls}"></div>'
                f'<span class="sc-name">{step["step"]}. {_html_escape(step["phase"])}'
                f'{" → " + _html_escape(action) if action else ""}</span>'
                f'</div>\n'
            )

        cards_html += f"""
<div class="card {'all-pass' if ok else 'some-fail'}" data-card="{pi}">
  <div class="identity">
    <img class="avatar" src="{_avatar_url(name, pi)}" alt="{_html_attr(name)}"
         onerror="this.style.background='#2d333b'" />
    <div class="person-name">{_html_escape(name)}</div>
    <div class="person-role">{_html_escape(meta.get("description", ""))}</div>
    <div class="pronouns">{_html_escape(meta.get("pronoun", "they"))} · {_html_escape(meta.get("device", ""))}</div>
    <div class="pass-badge {'badge-all' if journey['goal_achieved'] else 'badge-some'}">{_html_escape(verdict)}</div>
  </div>

  <div class="constraints-panel" id="cp-{pi}">
    <div class="panel-header">
      <div class="goal-text">{_html_escape(journey["goal"])} · {journey["step_count"]} steps · {journey["total_time"]:.1f}s</div>
      <div class="scenario-label" id="cp-{pi}-label"></div>
    </div>
    <div id="cp-{pi}-body">{overviews[pi]}</div>
  </div>

  <div class="grid-panel">
    <div class="grid-header">
      <div class="legend">
        <span class="leg-dot leg-pass"></span> step
        <span class="leg-dot leg-warn"></span> warning
      </div>
      <div class="grid-score">{len(journey.get("steps", []))} steps</div>
    </div>
    <div class="scenario-list" id="steps-{pi}">
{rows}    </div>
  </div>
</div>
"""

    recs = "".join(f"<li>{_html_escape(r)}</li>" for r in comparison.get("recommendations", []))
    recs_html = (
        f'<div class="gaps-section"><div class="gaps-title">Recommendations</div>'
        f'<ul class="friction">{recs}</ul></div>' if recs else ""
    )
    expectation_line = (
        f'<span><strong>{j_summary["satisfied"]}</strong> / <strong>{j_summary["total"]}</strong> '
        f'expectations satisfied</span>' if j_summary else ""
    )

    html = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Journey Simulation Report</title>
  <style>
:root {{
  --bg:      #0d1117;
  --card:    #161b22;
  --card2:   #1c2128;
  --border:  #30363d;
  --text:    #e6edf3;
  --muted:   #8b949e;
  --pass:    #3fb950;
  --fail:    #f85149;
  --blue:    #58a6ff;
  --orange:  #ffa657;
  --mono:    'SF Mono', 'Consolas', 'Menlo', monospace;
}}
* {{ box-sizing: border-box; margin: 0; padding: 0; }}
body {{
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
  background: var(--bg); color: var(--text);
  padding: 32px 24px; min-height: 100vh;
}}
header {{ border-bottom: 1px solid var(--border); padding-bottom: 20px; margin-bottom: 28px; }}
header h1 {{ font-size: 22px; font-weight: 600; margin-bottom: 6px; }}
.summary {{ font-size: 13px; color: var(--muted); display: flex; gap: 20px; flex-wrap: wrap; }}
.summary strong {{ color: var(--text); }}
.summary .s-pass {{ color: var(--pass); font-weight: 600; }}
.summary .s-fail {{ color: var(--fail); font-weight: 600; }}

/* ── Card layout ─────────────────────────────────────────── */
.card {{
  display: grid; grid-template-columns: 150px 1fr 320px;
  background: var(--card); border: 1px solid var(--border);
  border-radius: 12px; margin-bottom: 14px; overflow: hidden;
}}
.identity {{
  display: flex; flex-direction: column; align-items: center;
  padding: 20px 16px; gap: 8px;
  border-right: 1px solid var(--border); background: var(--card2);
}}
.avatar {{ width: 72px; height: 72px; border-radius: 50%; border: 2px solid var(--border); background: #2d333b; }}
.card.all-pass  .avatar {{ border-color: var(--pass); box-shadow: 0 0 0 3px rgba(63,185,80,.18); }}
.card.some-fail .avatar {{ border-color: var(--fail); box-shadow: 0 0 0 3px rgba(248,81,73,.12); }}
.person-name {{ font-size: 14px; font-weight: 700; text-align: center; }}
.person-role {{ font-size: 10px; color: var(--muted); text-align: center; line-height: 1.4; }}
.pronouns    {{ font-size: 10px; color: var(--border); font-style: italic; text-align: center; }}
.pass-badge {{ font-size: 10px; font-weight: 600; padding: 2px 7px; border-radius: 10px; }}
.badge-all  {{ background: rgba(63,185,80,.2);  color: var(--pass); }}
.badge-some {{ background: rgba(248,81,73,.15); color: var(--fail); }}

/* ── Middle panel ────────────────────────────────────────── */
.constraints-panel {{ padding: 18px 20px; border-right: 1px solid var(--border); display: flex; flex-direction: column; gap: 10px; min-width: 0; }}
.constraints-panel.step-active {{ background: rgba(88,166,255,.04); }}
.panel-header {{ display: flex; flex-direction: column; gap: 6px; }}
.goal-text {{ font-size: 12px; color: var(--muted); line-height: 1.5; }}
.scenario-label {{ display: none; font-size: 11px; font-weight: 600; color: var(--blue); border-top: 1px solid var(--border); padding-top: 5px; }}
.scenario-label.visible {{ display: flex; gap: 6px; }}
.sl-close {{ cursor: pointer; color: var(--muted); margin-left: auto; }}
.meters {{ display: flex; flex-direction: column; gap: 4px; }}
.meter {{ display: flex; align-items: center; gap: 8px; font-size: 11px; }}
.m-label {{ width: 80px; color: var(--muted); }}
.m-track {{ flex: 1; height: 6px; background: #0d1117; border-radius: 3px; overflow: hidden; }}
.m-fill {{ display: block; height: 100%; }}
.m-value {{ width: 40px; text-align: right; font-family: var(--mono); }}
.abandon-msg {{ font-size: 12px; color: var(--fail); font-style: italic; }}
.monologue {{ font-size: 13px; line-height: 1.5; font-style: italic; }}
.section-label {{ font-size: 11px; color: var(--muted); text-transform: uppercase; letter-spacing: .06em; }}
.muted-note {{ font-size: 11px; color: var(--muted); }}
.friction {{ font-size: 12px; padding-left: 18px; line-height: 1.6; }}
.constraints {{ display: flex; flex-direction: column; gap: 4px; }}
.constraint {{
  display: flex; align-items: center; font-family: var(--mono); font-size: 11px;
  padding: 4px 9px; border-radius: 5px; background: #0d1117;
  border: 1px solid var(--border); color: var(--blue); line-height: 1.6;
}}
.constraint.c-fail {{ border-color: var(--fail); background: rgba(248,81,73,.08); color: var(--fail); }}
.constraint.c-unexercised {{ opacity: 0.4; }}
.c-status {{ margin-right: 6px; font-size: 10px; }}
.c-body   {{ flex: 1; display: flex; flex-direction: column; min-width: 0; }}
.c-label  {{ font-weight: 600; }}
.c-expr   {{ font-size: 10px; opacity: 0.55; word-break: break-all; }}
.c-count  {{ margin-left: 8px; font-size: 10px; opacity: 0.55; }}
.constraints-summary {{ font-size: 11px; color: var(--muted); cursor: pointer; padding: 5px 4px; }}

/* ── Recommendations ─────────────────────────────────────── */
.gaps-section {{ background: rgba(255,166,87,.08); border: 1px solid var(--orange); border-radius: 10px; padding: 18px 22px; margin-bottom: 24px; }}
.gaps-title {{ font-weight: 700; color: var(--orange); margin-bottom: 6px; font-size: 14px; }}

/* ── Step list ───────────────────────────────────────────── */
.grid-panel {{ padding: 14px 16px; display: flex; flex-direction: column; gap: 8px; }}
.grid-header {{ display: flex; justify-content: space-between; font-size: 11px; color: var(--muted); padding-bottom: 6px; border-bottom: 1px solid var(--border); }}
.scenario-list {{ display: flex; flex-direction: column; gap: 3px; max-height: 360px; overflow-y: auto; }}
.step-row {{ display: flex; align-items: center; gap: 8px; padding: 4px 6px; border-radius: 5px; cursor: pointer; border: 1px solid transparent; }}
.step-row:hover {{ background: rgba(255,255,255,.05); }}
.step-row.selected {{ background: rgba(88,166,255,.1); border-color: rgba(88,166,255,.3); }}
.ball {{ width: 10px; height: 10px; border-radius: 50%; flex-shrink: 0; pointer-events: none; }}
.ball.pass {{ background: var(--pass); }}
.ball.warn {{ background: var(--orange); }}
.sc-name {{ font-size: 11px; color: var(--text); white-space: nowrap; overflow: hidden; text-overflow: ellipsis; pointer-events: none; }}
.legend {{ display: flex; gap: 8px; align-items: center; font-size: 10px; }}
.leg-dot {{ width: 8px; height: 8px; border-radius: 50%; display: inline-block; }}
.leg-pass {{ background: var(--pass); }}
.leg-warn {{ background: var(--orange); }}
  </style>
</head>
<body>
<header>
  <h1>🧭 Journey Simulation Report</h1>
  <div class="summary">
    <span>{_html_escape(comparison.get("goal", ""))} · {_html_escape(comparison.get("url", ""))}</span>
    <span><span class="s-pass">{n_pass} reached goal</span> &nbsp; <span class="s-fail">{n_fail} abandoned</span></span>
    {expectation_line}
  </div>
</header>
{recs_html}
{cards_html}
<script>
const OVERVIEW = {json.dumps(overviews)};
const selected = {{}};  // cardIdx → row | null

function esc(s) {{
  return String(s).replace(/&/g, '&amp;').replace(/</g, '&lt;').replace(/>/g, '&gt;');
}}

function showStep(row, pi) {{
  const s = JSON.parse(row.dataset.step);
  const pct = v => Math.round((v || 0) * 100) + '%';
  document.getElementById(`cp-${{pi}}-body`).innerHTML =
      `<div class="monologue">“${{esc(s.monologue)}}”</div>`
    + (s.action ? `<div class="section-label">action: ${{esc(s.action)}}</div>` : '')
    + `<div class="muted-note">patience ${{pct(s.state.patience_remaining)}} · frustration `
    + `${{pct(s.state.frustration_level)}} · confusion ${{pct(s.state.confusion_level)}} · feeling ${{esc(s.emotion)}}</div>`
    + (s.warning ? `<div class="abandon-msg">${{esc(s.warning)}}</div>` : '');
  const label = document.getElementById(`cp-${{pi}}-label`);
  label.innerHTML = `<span>step ${{s.step}} · ${{esc(s.phase)}}</span><span class="sl-close" data-card="${{pi}}">✕</span>`;
  label.classList.add('visible');
  document.getElementById(`cp-${{pi}}`).classList.add('step-active');
  row.classList.add('selected');
  selected[pi] = row;
}}

function reset(pi) {{
  if (selected[pi]) selected[pi].classList.remove('selected');
  selected[pi] = null;
  document.getElementById(`cp-${{pi}}-body`).innerHTML = OVERVIEW[pi];
  const label = document.getElementById(`cp-${{pi}}-label`);
  label.classList.remove('visible');
  label.innerHTML = '';
  document.getElementById(`cp-${{pi}}`).classList.remove('step-active');
}}

document.querySelectorAll('.step-row').forEach(row => {{
  const pi = parseInt(row.dataset.card, 10);
  row.addEventListener('click', () => {{
    const same = selected[pi] === row;
    reset(pi);
    if (!same) showStep(row, pi);
  }});
}});

document.addEventListener('click', e => {{
  const btn = e.target.closest('.sl-close');
  if (btn) reset(parseInt(btn.dataset.card, 10));
}});

document.addEventListener('keydown', e => {{
  if (e.key === 'Escape') Object.keys(selected).forEach(k => reset(parseInt(k, 10)));
}});
</script>
</body>
</html>"""
    Path(output_path).write_text(html)
