"""
Per-journey mutable state and the terminal result records.

CognitiveState is created once at journey start and mutated only by the
orchestrator.  Every scalar is clamped to [0, 1] on write, and
``patience_remaining`` can only go down.  At termination the state is
frozen into a JourneyResult (serialised via ``to_dict``).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field

from .fatigue import CognitiveMode, DecisionFatigue

MOODS = ("neutral", "hopeful", "confused", "frustrated", "defeated", "relieved")
PHASES = ("perceive", "comprehend", "decide", "execute", "evaluate")
ABANDONMENT_REASONS = (
    "patience", "confusion", "frustration", "timeout", "loop",
    "no_progress", "decision_fatigue",
)

PATIENCE_BASE_COST        = 0.02
PATIENCE_FRUSTRATION_COST = 0.05
EXECUTION_FAILURE_PENALTY = 0.15
PERCEPTION_FAILURE_PENALTY = 0.1


def clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass
class ActionAttempt:
    action:  str
    target:  "str | None" = None
    success: bool = False
    url:     "str | None" = None


@dataclass
class ErrorRecord:
    error:   str
    context: str
    kind:    str = "execution"   # perception / execution / decision


@dataclass
class Memory:
    pages_visited:      list = field(default_factory=list)
    actions_attempted:  list = field(default_factory=list)
    errors_encountered: list = field(default_factory=list)
    backtrack_count:    int = 0

    def visit(self, url: str) -> bool:
        """Append a page visit; returns True when it was a step back."""
        backtracked = len(self.pages_visited) >= 2 and self.pages_visited[-2] == url
        if backtracked:
            self.backtrack_count += 1
        self.pages_visited.append(url)
        return backtracked

    def last_action_succeeded(self) -> "bool | None":
        if not self.actions_attempted:
            return None
        return self.actions_attempted[-1].success


@dataclass
class CognitiveState:
    patience_remaining: float = 1.0
    confusion_level:    float = 0.0
    frustration_level:  float = 0.0
    goal_progress:      float = 0.0
    confidence_level:   float = 0.5
    current_mood:       str = "neutral"
    memory:             Memory = field(default_factory=Memory)
    time_elapsed:       float = 0.0   # seconds
    step_count:         int = 0
    decision_fatigue:   DecisionFatigue = field(default_factory=DecisionFatigue)
    cognitive_mode:     CognitiveMode = field(default_factory=CognitiveMode)

    @classmethod
    def initial(cls, start_url: str, traits) -> "CognitiveState":
        return cls(
            memory=Memory(pages_visited=[start_url]),
            cognitive_mode=CognitiveMode.initial(traits),
        )

    @property
    def current_url(self) -> str:
        return self.memory.pages_visited[-1]

    def set_confusion(self, value: float):
        self.confusion_level = clamp01(value)

    def set_frustration(self, value: float):
        self.frustration_level = clamp01(value)

    def set_progress(self, value: float):
        self.goal_progress = clamp01(value)

    def set_mood(self, mood: str):
        if mood not in MOODS:
            raise ValueError(f"Unknown mood {mood!r}. Expected one of: {', '.join(MOODS)}")
        self.current_mood = mood

    def deplete_patience(self) -> float:
        """Per-step patience cost: 0.02 plus 5% of current frustration."""
        cost = PATIENCE_BASE_COST + self.frustration_level * PATIENCE_FRUSTRATION_COST
        self.patience_remaining = clamp01(self.patience_remaining - cost)
        return self.patience_remaining

    def snapshot(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> "CognitiveState":
        memory = dict(d.get("memory") or {})
        memory["actions_attempted"]  = [ActionAttempt(**a) for a in memory.get("actions_attempted", [])]
        memory["errors_encountered"] = [ErrorRecord(**e) for e in memory.get("errors_encountered", [])]
        return cls(
            patience_remaining=d.get("patience_remaining", 1.0),
            confusion_level=d.get("confusion_level", 0.0),
            frustration_level=d.get("frustration_level", 0.0),
            goal_progress=d.get("goal_progress", 0.0),
            confidence_level=d.get("confidence_level", 0.5),
            current_mood=d.get("current_mood", "neutral"),
            memory=Memory(**memory),
            time_elapsed=d.get("time_elapsed", 0.0),
            step_count=d.get("step_count", 0),
            decision_fatigue=DecisionFatigue(**(d.get("decision_fatigue") or {})),
            cognitive_mode=CognitiveMode(**(d.get("cognitive_mode") or {})),
        )


@dataclass
class FrictionPoint:
    step:                 int
    url:                  str
    type:                 str          # confusion / frustration / confusing_ui
    frustration_increase: float
    monologue:            str = ""
    element:              "str | None" = None
    description:          "str | None" = None


@dataclass
class StepRecord:
    step:              int
    phase:             str
    monologue:         str
    action:            "str | None"
    state:             dict
    emotions:          dict
    focused_elements:  list = field(default_factory=list)
    emotional_warning: "str | None" = None
    mode_switch:       "str | None" = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class JourneyResult:
    persona:             str
    goal:                str
    goal_achieved:       bool
    final_state:         CognitiveState
    abandonment_reason:  "str | None" = None
    abandonment_message: "str | None" = None
    total_time:          float = 0.0
    step_count:          int = 0
    friction_points:     list = field(default_factory=list)
    full_monologue:      list = field(default_factory=list)
    emotional_events:    list = field(default_factory=list)
    final_emotions:      dict = field(default_factory=dict)
    steps:               list = field(default_factory=list)
    summary:             dict = field(default_factory=dict)
    task_type:           str = "find_information"
    start_url:           str = ""
    persona_meta:        dict = field(default_factory=dict)

    @property
    def abandoned(self) -> bool:
        return self.abandonment_reason is not None

    def to_dict(self) -> dict:
        d = asdict(self)
        d["final_state"] = self.final_state.snapshot()
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "JourneyResult":
        d = dict(d)
        d.pop("schema", None)
        d["final_state"] = CognitiveState.from_dict(d.get("final_state") or {})
        d["friction_points"] = [FrictionPoint(**fp) for fp in d.get("friction_points", [])]
        known = cls.__dataclass_fields__
        return cls(**{k: v for k, v in d.items() if k in known})
