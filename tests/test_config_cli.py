"""
Config loading, the config-driven runner, scaffolding, the HTML report and the CLI.
"""
import json

import pytest

from conftest import HOME, SITE, FakeClock, no_sleep
from journeysim.cli import main
from journeysim.config import load_config
from journeysim.journey.collaborators import StaticSiteExecutor
from journeysim.journey.comparison import compare_personas
from journeysim.journey.policies import ScriptedPolicy
from journeysim.persona.presets import load_personas
from journeysim.report.html import generate_report
from journeysim.runner import load_factory, run_failed, run_from_config
from journeysim.scaffold import init_project
from journeysim.schema import COMPARISON_SCHEMA, RESULT_SCHEMA

_DRIVER = '''\
from journeysim import StaticSiteExecutor

SITE = {"https://x.test/": {"title": "Home", "content": "Welcome",
                            "elements": [{"text": "Start", "tag": "a", "area": "cta"}]}}


def create_executor(persona):
    return StaticSiteExecutor(SITE)
'''

_POLICY = '''\
from journeysim import ScriptedPolicy


def create_reasoner(persona):
    if persona == "impatient-user":
        return ScriptedPolicy([{"newFrustration": 0.9}])
    return ScriptedPolicy([{"goalAchieved": True, "monologue": "Found it."}])
'''

_EXPECT = '''\
from journeysim import Expectation, named


class Reached(Expectation):
    name = "reached"

    def constraints(self, P):
        return [named("reached", P.goal_achieved)]
'''


def _write_project(tmp_path, personas="[power-user]", extra=""):
    (tmp_path / "driver.py").write_text(_DRIVER)
    (tmp_path / "policy.py").write_text(_POLICY)
    (tmp_path / "expect.py").write_text(_EXPECT)
    config = tmp_path / "journeysim.yaml"
    config.write_text(
        'goal: "Find the start page"\n'
        'start_url: "https://x.test/"\n'
        "executor: driver.py\n"
        "reasoner: policy.py\n"
        f"personas: {personas}\n"
        "expectations: [expect.py]\n"
        + extra
    )
    return config


def _comparison():
    return compare_personas(
        ["power-user", "impatient-user"], "Apply for admission", HOME,
        lambda name: StaticSiteExecutor(SITE, start_url=HOME),
        lambda name: ScriptedPolicy(
            [{"newFrustration": 0.9, "frictionDescription": "Too slow"}] if name == "impatient-user"
            else [{"monologue": "Here we go", "action": "click:Apply for admission"}, {"goalAchieved": True}]
        ),
        clock=FakeClock(), sleep=no_sleep,
    )


# ── Config ─────────────────────────────────────────────────────────────────────

class TestLoadConfig:
    def test_defaults_and_paths(self, tmp_path):
        cfg = load_config(_write_project(tmp_path, personas='[first-timer, {name: elderly-user, traits: {patience: 0.9}}]'))
        assert cfg["_personas"] == [
            {"name": "first-timer", "traits": None},
            {"name": "elderly-user", "traits": {"patience": 0.9}},
        ]
        assert (cfg["max_steps"], cfg["max_time"], cfg["concurrency"], cfg["vision"]) == (50, None, 2, False)
        assert cfg["_executor_file"] == tmp_path / "driver.py"
        assert cfg["_expectation_files"] == [str(tmp_path / "expect.py")]
        assert cfg["_base_dir"] == tmp_path

    def test_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="journeysim init"):
            load_config(tmp_path / "missing.yaml")

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "journeysim.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(path)

    @pytest.mark.parametrize("body, message", [
        ('start_url: x\nexecutor: d.py\nreasoner: p.py\npersonas: [a]\n', "goal"),
        ('goal: g\nstart_url: x\nexecutor: d.py\nreasoner: p.py\n', "No personas"),
        ('goal: g\nstart_url: x\nexecutor: d.py\nreasoner: p.py\npersonas: [{traits: {}}]\n', "Invalid persona"),
        ('goal: g\nstart_url: x\nexecutor: d.py\nreasoner: p.py\npersonas: [{name: a, traits: 3}]\n', "mapping"),
        ('goal: g\nstart_url: x\nexecutor: d.py\nreasoner: p.py\npersonas: [a]\nmax_steps: 0\n', "max_steps"),
        ('goal: g\nstart_url: x\nexecutor: d.py\nreasoner: p.py\npersonas: [a]\nmax_time: -5\n', "max_time"),
    ])
    def test_invalid(self, tmp_path, body, message):
        path = tmp_path / "journeysim.yaml"
        path.write_text(body)
        with pytest.raises(ValueError, match=message):
            load_config(path)


# ── Runner ─────────────────────────────────────────────────────────────────────

class TestRunner:
    def test_run_from_config(self, tmp_path, capsys):
        config = _write_project(tmp_path, extra="output:\n  results: out/results.json\n  report: report.html\n")
        (tmp_path / "out").mkdir()
        output = run_from_config(str(config))

        assert output["schema"] == COMPARISON_SCHEMA
        assert output["personas"][0]["success"]
        assert output["judgement"]["summary"] == {"total": 1, "satisfied": 1, "score": 1.0}
        assert json.loads((tmp_path / "out" / "results.json").read_text())["goal"] == "Find the start page"
        assert "power-user" in (tmp_path / "report.html").read_text()
        assert not run_failed(output)

    def test_persona_override_and_failure(self, tmp_path):
        config = _write_project(tmp_path)
        output = run_from_config(str(config), persona_override=["impatient-user"],
                                 output_path=str(tmp_path / "r.json"))
        assert [r["persona"] for r in output["personas"]] == ["impatient-user"]
        assert output["judgement"]["summary"]["satisfied"] == 0
        assert run_failed(output)

    def test_unknown_persona_fails_before_running(self, tmp_path):
        config = _write_project(tmp_path, personas="[astronaut]")
        with pytest.raises(ValueError, match="Unknown persona"):
            run_from_config(str(config))

    def test_missing_factory(self, tmp_path):
        script = tmp_path / "empty_driver.py"
        script.write_text("X = 1\n")
        with pytest.raises(RuntimeError, match="create_executor"):
            load_factory(script, "executor", "create_executor")

    def test_missing_module(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_factory(tmp_path / "nope.py", "executor", "create_executor")


# ── Scaffold ───────────────────────────────────────────────────────────────────

class TestScaffold:
    def test_creates_files_and_skips_existing(self, tmp_path, capsys):
        (tmp_path / "driver.py").write_text("# mine\n")
        init_project(tmp_path)
        out = capsys.readouterr().out
        assert "skipped  driver.py" in out
        assert (tmp_path / "driver.py").read_text() == "# mine\n"
        for name in ("journeysim.yaml", "policy.py", "personas/example_persona.py",
                     "expectations/example_expectation.py", ".gitignore"):
            assert (tmp_path / name).exists()

    def test_example_persona_uses_known_traits(self, tmp_path):
        init_project(tmp_path)
        (persona,) = load_personas([tmp_path / "personas" / "example_persona.py"])
        traits = persona.trait_vector()
        assert persona.name == "returning-applicant"
        assert (traits.patience, traits.transfer_learning, traits.persistence) == (0.4, 0.7, 0.6)

    def test_scaffolded_project_runs(self, tmp_path):
        init_project(tmp_path)
        cfg = load_config(tmp_path / "journeysim.yaml")
        assert [p["name"] for p in cfg["_personas"]][-1] == "returning-applicant"

        output = run_from_config(cfg, persona_override=["power-user"])
        row = output["personas"][0]
        assert row["success"], row["cognitive"]["monologue"]
        assert output["judgement"]["summary"]["satisfied"] == 1
        assert (tmp_path / "results.json").exists()
        assert (tmp_path / "report.html").exists()


# ── HTML report ────────────────────────────────────────────────────────────────

class TestReport:
    def test_comparison_report(self, tmp_path):
        path = tmp_path / "report.html"
        generate_report(_comparison(), path)
        html = path.read_text()
        assert html.startswith("<!DOCTYPE html>")
        assert "power-user" in html and "impatient-user" in html
        assert "reached goal" in html
        assert "frustration" in html

    def test_single_result(self, tmp_path):
        journey = _comparison()["personas"][0]["journey"]
        assert journey["schema"] == RESULT_SCHEMA
        path = tmp_path / "one.html"
        generate_report(journey, path)
        assert "power-user" in path.read_text()

    def test_rejects_other_documents(self, tmp_path):
        with pytest.raises(ValueError):
            generate_report({"schema": "nope"}, tmp_path / "x.html")


# ── CLI ────────────────────────────────────────────────────────────────────────

def _exit_code(argv):
    with pytest.raises(SystemExit) as exc:
        main(argv)
    return exc.value.code


class TestCli:
    def test_personas(self, capsys):
        assert _exit_code(["personas"]) == 0
        out = capsys.readouterr().out
        assert "power-user" in out and "dyslexic-user" in out

    def test_personas_accessibility_json(self, capsys):
        assert _exit_code(["personas", "--accessibility", "--json"]) == 0
        names = [p["name"] for p in json.loads(capsys.readouterr().out)]
        assert "power-user" not in names
        assert "cognitive-adhd" in names

    def test_profile_with_override(self, capsys):
        assert _exit_code(["profile", "elderly-user", "--trait", "patience=0.2", "--time-limit", "45"]) == 0
        doc = json.loads(capsys.readouterr().out)
        assert doc["traits"]["patience"] == 0.2
        assert doc["profile"]["thresholds"]["frustration_max"] == 0.7
        assert doc["profile"]["thresholds"]["time_limit"] == 45
        assert doc["emotions"]["initial"]["dominant"] == "anxiety"

    @pytest.mark.parametrize("argv", [
        ["profile", "astronaut"],
        ["profile", "first-timer", "--trait", "patience"],
        ["profile", "first-timer", "--trait", "patience=lots"],
        ["profile", "first-timer", "--trait", "patience=1.5"],
    ])
    def test_profile_errors(self, argv, capsys):
        assert _exit_code(argv) == 1
        assert "error:" in capsys.readouterr().err

    def test_run_without_config(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert _exit_code(["run"]) == 1

    def test_run_exit_codes(self, tmp_path, capsys):
        config = str(_write_project(tmp_path))
        out = str(tmp_path / "results.json")
        assert _exit_code(["run", "--config", config, "--out", out]) == 0
        assert "COGNITIVE PERSONA COMPARISON REPORT" in capsys.readouterr().err
        assert _exit_code(["run", "--config", config, "--out", out, "--persona", "impatient-user", "--quiet"]) == 2
        assert capsys.readouterr().err == ""

    def test_judge(self, tmp_path, capsys):
        results = tmp_path / "comparison.json"
        results.write_text(json.dumps(_comparison()))
        (tmp_path / "expect.py").write_text(_EXPECT)
        code = _exit_code(["judge", "--results", str(results), "--expectations", str(tmp_path / "expect.py"),
                           "--out", str(tmp_path / "judgement.json")])
        assert code == 2
        judgement = json.loads((tmp_path / "judgement.json").read_text())
        assert judgement["summary"]["satisfied"] == 1
        assert "✗ impatient-user" in capsys.readouterr().err

    def test_judge_missing_expectation_file(self, tmp_path):
        results = tmp_path / "comparison.json"
        results.write_text(json.dumps(_comparison()))
        assert _exit_code(["judge", "--results", str(results), "--expectations", str(tmp_path / "nope.py")]) == 1

    def test_report(self, tmp_path):
        results = tmp_path / "comparison.json"
        results.write_text(json.dumps(_comparison()))
        out = tmp_path / "r.html"
        assert _exit_code(["report", "--results", str(results), "--out", str(out)]) == 0
        assert out.exists()

    def test_init(self, tmp_path):
        assert _exit_code(["init", str(tmp_path / "proj")]) == 0
        assert (tmp_path / "proj" / "journeysim.yaml").exists()
