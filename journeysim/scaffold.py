"""
Scaffold a new journeysim project with the minimal file set.
Called by `journeysim init [DIR]`.
"""
from pathlib import Path

_DRIVER_PY = '''\
"""
driver.py: how simulated users see and act on your site.

journeysim calls create_executor(persona) once per journey.  The executor
needs perceive(), click(target), hover(target), fill(label, value) and
navigate(url); methods may be plain or async.  Wrap your browser
automation here, or describe a few pages with StaticSiteExecutor as below.
"""
from journeysim import StaticSiteExecutor

SITE = {
    "https://example.test/": {
        "title": "Example College",
        "content": "[H1] Welcome to Example College",
        "elements": [
            {"text": "Apply now", "tag": "a", "area": "cta", "href": "https://example.test/apply"},
            {"text": "News", "tag": "a", "area": "navigation", "href": "https://example.test/news"},
            {"text": "Subscribe to our newsletter", "tag": "button", "area": "sidebar"},
        ],
    },
    "https://example.test/apply": {
        "title": "Apply",
        "content": "[H1] Application form",
        "elements": [
            {"text": "Submit application", "tag": "button", "area": "forms",
             "href": "https://example.test/done"},
        ],
        "inputs": [{"label": "Email", "type": "email"}],
    },
    "https://example.test/news": {
        "title": "News",
        "content": "[H1] Campus news",
        "elements": [{"text": "Home", "tag": "a", "area": "navigation", "href": "https://example.test/"}],
    },
    "https://example.test/done": {
        "title": "Application received",
        "content": "[H1] Thank you, your application was received",
    },
}


def create_executor(persona):
    return StaticSiteExecutor(SITE, start_url="https://example.test/")
'''

_POLICY_PY = '''\
"""
policy.py: how simulated users decide what to do next.

journeysim calls create_reasoner(persona) once per journey.  A reasoner has
propose_decision(context) returning a dict (or JSON text) with phase,
monologue, action ("click:Apply now", "fill:Email:me@example.com", ...),
goalAchieved, goalProgress, newConfusion, newFrustration and mood.

context["system_prompt"] and context["step_prompt"] are ready to send to a
language model; FocusPolicy below is a rule-based stand-in.
"""
from journeysim import FocusPolicy


def create_reasoner(persona):
    return FocusPolicy(
        success_text="application was received",
        fill_values={"Email": "applicant@example.com"},
    )
'''

_PERSONA_PY = '''\
"""
personas/example_persona.py: a project-specific simulated user.

Rename this file and the class.  Traits you leave out default to 0.5.
List the persona's name under `personas:` in journeysim.yaml.
"""
from journeysim import Persona


class ReturningApplicant(Persona):
    name        = "returning-applicant"
    description = "Applied last year, remembers roughly where things are"
    age_range   = "18-25"
    tech_level  = "intermediate"
    device      = "mobile"
    traits      = {"patience": 0.4, "transfer_learning": 0.7, "persistence": 0.6}
'''

_EXPECTATION_PY = '''\
"""
expectations/example_expectation.py: what a good journey looks like.

Each constraint is a Z3 expression over the journey facts (P.step_count,
P.max_frustration, P.goal_achieved, P.abandoned_for_confusion, ...).
"""
from journeysim import Expectation, Implies, named


class ApplicantsGetThrough(Expectation):
    name        = "applicants-get-through"
    description = "Anyone can submit an application without a struggle."

    def constraints(self, P):
        return [
            named("journey/goal-reached", P.goal_achieved),
            named("journey/short", Implies(P.goal_achieved, P.step_count <= 10)),
            named("journey/calm", P.max_frustration <= 0.6),
        ]
'''

_CONFIG_YAML = '''\
# journeysim.yaml: project configuration
#
# Run every persona through the journey with: journeysim run
version: 1

goal: "Apply for admission and submit the application"
start_url: "https://example.test/"

# Python files exposing create_executor(persona) / create_reasoner(persona).
executor: driver.py
reasoner: policy.py

# Built-in personas (journeysim personas) or ones from persona_files.
# Trait overrides are merged over the persona's own traits.
personas:
  - first-timer
  - power-user
  - name: elderly-user
    traits: {patience: 0.9}
  - returning-applicant

persona_files:
  - personas/*.py

expectations:
  - expectations/*.py

max_steps: 30
max_time: 120
concurrency: 2

# Optional: where to save output.  Remove to write to stdout only.
output:
  results: results.json
  report:  report.html
'''

_GITIGNORE = '''\
results.json
report.html
__pycache__/
*.pyc
'''


def init_project(target: Path) -> None:
    target    = target.resolve()
    personas  = target / "personas"
    expect    = target / "expectations"
    personas.mkdir(parents=True, exist_ok=True)
    expect.mkdir(parents=True, exist_ok=True)

    files = {
        target   / "journeysim.yaml":          _CONFIG_YAML,
        target   / "driver.py":                _DRIVER_PY,
        target   / "policy.py":                _POLICY_PY,
        personas / "example_persona.py":       _PERSONA_PY,
        expect   / "example_expectation.py":   _EXPECTATION_PY,
        target   / ".gitignore":               _GITIGNORE,
    }

    created = []
    skipped = []
    for path, content in files.items():
        if path.exists():
            skipped.append(path.relative_to(target))
        else:
            path.write_text(content)
            created.append(path.relative_to(target))

    print(f"\n✓ journeysim project initialised in {target}\n")
    for f in created:
        print(f"  created  {f}")
    for f in skipped:
        print(f"  skipped  {f}  (already exists)")

    print("""
Layout:

  journeysim.yaml          ← goal, start URL, personas, limits
  driver.py                ← how personas see and act on your site
  policy.py                ← how personas decide what to do next
  personas/*.py            ← project-specific personas
  expectations/*.py        ← Z3 constraints on finished journeys

Next steps:

  1. Edit  driver.py: point create_executor() at your site.
  2. Edit  policy.py: plug in a language model, or tune FocusPolicy.
  3. Edit  expectations/example_expectation.py: state what a good journey is.
  4. Run:  journeysim run
""")
