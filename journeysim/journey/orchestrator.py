"""
Journey orchestrator.

Drives one simulated user through a site, step by step:

    PERCEIVE → COMPREHEND → DECIDE → EXECUTE → EVALUATE

until the goal is achieved, an abandonment rule fires, or the step/time
budget runs out.  Page access goes through the executor and every decision
comes from the reasoner; everything in between (patience, emotions, focus,
fatigue, reasoning mode, motor timing) is computed here.

    orch   = JourneyOrchestrator(executor, reasoner, verbose=True)
    result = await orch.run(JourneyRequest("first-timer", "Apply for admission",
                                           "https://example.edu"))

Per-step problems (unreadable page, failed action, unparsable decision) are
absorbed into the simulated user's state and error log; the only hard
failures are missing journey inputs and invalid persona configuration.
"""
from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass

from journeysim.cognition.emotions import (
    apply_emotional_trigger,
    calculate_abandonment_modifier,
    create_emotional_config,
    decay_emotions,
    describe_emotional_state,
    should_consider_abandonment,
)
from journeysim.cognition.fatigue import update_cognitive_mode
from journeysim.cognition.focus import (
    calculate_focus_priority,
    filter_by_attention,
    get_focus_hierarchy,
    infer_task_type_from_goal,
)
from journeysim.cognition.motor import action_delay_ms, motor_profile
from journeysim.cognition.state import (
    EXECUTION_FAILURE_PENALTY,
    PERCEPTION_FAILURE_PENALTY,
    ActionAttempt,
    CognitiveState,
    ErrorRecord,
    FrictionPoint,
    JourneyResult,
    StepRecord,
)
from journeysim.journey.collaborators import ActionOutcome, Perception, maybe_await
from journeysim.journey.context import build_decision_context
from journeysim.journey.decision import Decision, MalformedDecision, parse_decision
from journeysim.persona.base import Persona
from journeysim.persona.presets import default_registry
from journeysim.persona.profile import derive_profile

FRICTION_LEVEL   = 0.4
CLARITY_DROP     = 0.2
TIME_PRESSURE_AT = 0.3
NO_PROGRESS_MIN  = 0.1
LOOP_WINDOW      = 5

ABANDONMENT_MESSAGES = {
    "patience":         "This is taking too long. I give up.",
    "confusion":        "I have no idea what to do. This is too confusing.",
    "frustration":      "This is so frustrating! I'm done.",
    "decision_fatigue": "Too many choices... I can't think straight anymore. Maybe later.",
    "loop":             "I keep ending up on the same pages. Something is wrong.",
    "no_progress":      "I'm not making any progress. This isn't working.",
}
OUT_OF_STEPS_MESSAGE = "I've run out of steps for this."


@dataclass
class JourneyRequest:
    persona:         "str | Persona"
    goal:            str
    start_url:       str
    trait_overrides: "dict | None" = None
    max_steps:       int = 50
    max_time:        "float | None" = None   # seconds; overrides the patience-derived limit
    vision:          bool = False
    task_type:       "str | None" = None

    def validate(self):
        missing = [name for name in ("persona", "goal", "start_url") if not getattr(self, name)]
        if missing:
            raise ValueError(f"Journey request is missing required input(s): {', '.join(missing)}")
        if self.max_steps < 1:
            raise ValueError(f"max_steps must be at least 1, got {self.max_steps}")


def check_abandonment(state: CognitiveState, thresholds) -> "tuple[str, str] | None":
    """Ordered give-up rules; the first one that holds wins."""
    if state.patience_remaining < thresholds.patience_min:
        reason = "patience"
    elif state.confusion_level > thresholds.confusion_max:
        reason = "confusion"
    elif state.frustration_level > thresholds.frustration_max:
        reason = "frustration"
    elif state.decision_fatigue.fatigue_level > thresholds.decision_fatigue_max:
        reason = "decision_fatigue"
    elif _is_looping(state.memory.pages_visited, thresholds.loop_detection_threshold):
        reason = "loop"
    elif (state.step_count > thresholds.max_steps_without_progress
          and state.goal_progress < NO_PROGRESS_MIN):
        reason = "no_progress"
    else:
        return None
    return reason, ABANDONMENT_MESSAGES[reason]


def _is_looping(pages: list, threshold: int) -> bool:
    recent = pages[-LOOP_WINDOW:]
    return len(recent) >= LOOP_WINDOW and len(set(recent)) <= threshold


def _log(msg: str):
    print(f"[journeysim] {msg}", file=sys.stderr)


class JourneyOrchestrator:
    """
    Runs journeys against one executor/reasoner pair.

    ``registry`` and ``focus_presets`` are read-only lookup tables; pass
    your own to run against custom personas or attention models.  ``clock``
    and ``sleep`` are injectable so tests can run without wall-clock time.
    """

    def __init__(
        self,
        executor,
        reasoner,
        registry=None,
        focus_presets=None,
        clock=time.monotonic,
        sleep=asyncio.sleep,
        step_pause: float = 0.0,
        verbose: bool = False,
        on_step=None,
        strict_decisions: bool = False,
    ):
        self.executor         = executor
        self.reasoner         = reasoner
        self.registry         = registry or default_registry()
        self.focus_presets    = focus_presets
        self.clock            = clock
        self.sleep            = sleep
        self.step_pause       = step_pause
        self.verbose          = verbose
        self.on_step          = on_step
        self.strict_decisions = strict_decisions

    def resolve_persona(self, request: JourneyRequest) -> Persona:
        if isinstance(request.persona, Persona):
            return request.persona.with_traits(request.trait_overrides)
        return self.registry.resolve(request.persona, request.trait_overrides)

    async def run(self, request: JourneyRequest) -> JourneyResult:
        request.validate()
        persona = self.resolve_persona(request)
        journey = _Journey(self, request, persona)

        opener = getattr(self.executor, "open", None)
        try:
            if opener is not None:
                try:
                    await maybe_await(opener(request.start_url))
                except Exception as e:
                    journey.record_error(e, "open", "perception")
            await journey.loop()
        finally:
            closer = getattr(self.executor, "close", None)
            if closer is not None:
                await maybe_await(closer())
        return journey.result()


class _Journey:
    """Mutable state of one running journey; never shared across journeys."""

    def __init__(self, orch: JourneyOrchestrator, request: JourneyRequest, persona: Persona):
        self.orch      = orch
        self.request   = request
        self.persona   = persona
        self.profile   = derive_profile(persona.trait_vector(), request.max_time)
        self.motor     = motor_profile(persona)
        self.task_type = request.task_type or infer_task_type_from_goal(request.goal)
        self.hierarchy = get_focus_hierarchy(self.task_type, orch.focus_presets)

        self.state      = CognitiveState.initial(request.start_url, self.profile.traits)
        self.emo_config = create_emotional_config(self.profile.traits)
        self.emotions   = self.emo_config.baseline

        self.events:    list = []
        self.friction:  list = []
        self.monologue: list = []
        self.steps:     list = []
        self.confusion_trace:   list = []
        self.frustration_trace: list = []

        self.goal_achieved = False
        self.outcomes_seen = 0
        self.reason:  "str | None" = None
        self.message: "str | None" = None
        self.started  = orch.clock()

    # ── Helpers ────────────────────────────────────────────────────────────────

    def trigger(self, name: str, description: "str | None" = None):
        context = {"description": description} if description else None
        self.emotions, event = apply_emotional_trigger(
            self.emotions, name, self.emo_config, self.state.step_count, context,
        )
        self.events.append(event.to_dict())

    def record_error(self, exc: BaseException, context: str, kind: str):
        self.state.memory.errors_encountered.append(
            ErrorRecord(error=str(exc) or type(exc).__name__, context=context, kind=kind)
        )
        if self.orch.verbose:
            _log(f"  {kind} error at {context}: {exc}")

    def terminate(self, reason: str, message: str):
        self.reason, self.message = reason, message
        self.monologue.append(message)
        if self.orch.verbose:
            _log(f"{self.persona.name} abandoned ({reason}): {message}")

    # ── Main loop ──────────────────────────────────────────────────────────────

    async def loop(self):
        orch  = self.orch
        state = self.state
        for step in range(1, self.request.max_steps + 1):
            state.step_count   = step
            state.time_elapsed = orch.clock() - self.started

            if state.time_elapsed > self.profile.thresholds.time_limit:
                self.terminate("timeout", f"I've spent too long on this ({round(state.time_elapsed)}s). Giving up.")
                return

            record = await self.step(step)

            if orch.on_step is not None:
                await maybe_await(orch.on_step(record))
            if self.reason is not None or self.goal_achieved:
                return
            if orch.step_pause:
                await orch.sleep(orch.step_pause)

        self.terminate("timeout", OUT_OF_STEPS_MESSAGE)

    async def step(self, step: int) -> StepRecord:
        orch, state, th = self.orch, self.state, self.profile.thresholds
        mode = state.cognitive_mode
        step_started, started_system = orch.clock(), mode.system

        # decay first so one step's triggers never blend into the next
        self.emotions = decay_emotions(self.emotions, self.emo_config)

        # PERCEIVE
        perception = await self.perceive(step)
        focused = sorted(
            filter_by_attention(perception.elements, self.hierarchy),
            key=lambda e: calculate_focus_priority(e, self.hierarchy),
            reverse=True,
        )

        # COMPREHEND / DECIDE
        decision = await self.decide(step, perception, focused)

        prev_confusion   = state.confusion_level
        prev_frustration = state.frustration_level
        prev_progress    = state.goal_progress

        if decision.new_confusion is not None:
            state.set_confusion(decision.new_confusion)
        if decision.new_frustration is not None:
            state.set_frustration(decision.new_frustration)
        if decision.goal_progress is not None:
            state.set_progress(decision.goal_progress)
        if decision.mood is not None:
            state.set_mood(decision.mood)
        state.deplete_patience()

        attempts = len(state.memory.actions_attempted)
        mode_switch = update_cognitive_mode(
            mode, state.confusion_level, state.memory.last_action_succeeded(),
            new_outcome=attempts > self.outcomes_seen,
        )
        self.outcomes_seen = attempts
        if mode_switch and orch.verbose:
            _log(f"  switching to {mode_switch} (confusion {state.confusion_level:.0%})")

        if decision.action:
            fatigue = state.decision_fatigue.record(decision.action)
            if orch.verbose:
                _log(f"  decision fatigue {fatigue:.0%} ({state.decision_fatigue.decisions_made} decisions)")

        self.appraise(prev_confusion, prev_progress)
        self.note_friction(step, decision, prev_confusion, prev_frustration)

        if decision.monologue:
            self.monologue.append(decision.monologue)

        _, warning = should_consider_abandonment(self.emotions)

        # step time goes to the mode active when the step began
        checkpoint = orch.clock()
        mode.credit(started_system, (checkpoint - step_started) * 1000)

        # EVALUATE (abandonment is terminal: nothing below runs once it fires)
        verdict = check_abandonment(state, th)
        if verdict is not None:
            self.terminate(*verdict)
        else:
            # EXECUTE
            if decision.action:
                await self.execute(step, decision)
                mode.credit(started_system, (orch.clock() - checkpoint) * 1000)
            if decision.goal_achieved:
                self.goal_achieved = True
                self.trigger("completion")

        self.confusion_trace.append(state.confusion_level)
        self.frustration_trace.append(state.frustration_level)

        if orch.verbose:
            _log(f"step {step} [{decision.phase}] mood={state.current_mood} "
                 f"patience={state.patience_remaining:.0%} confusion={state.confusion_level:.0%} "
                 f"frustration={state.frustration_level:.0%}"
                 + (f" action={decision.action}" if decision.action else ""))

        record = StepRecord(
            step=step,
            phase=decision.phase,
            monologue=decision.monologue,
            action=decision.action,
            state=state.snapshot(),
            emotions=self.emotions.to_dict(),
            focused_elements=[e.get("text", "") for e in focused],
            emotional_warning=warning,
            mode_switch=mode_switch,
        )
        self.steps.append(record.to_dict())
        return record

    # ── Phases ─────────────────────────────────────────────────────────────────

    async def perceive(self, step: int) -> Perception:
        url = self.state.current_url
        try:
            raw = await maybe_await(self.orch.executor.perceive())
            perception = Perception.coerce(raw, url)
        except Exception as e:
            self.record_error(e, f"Step {step}: perceive", "perception")
            self.state.set_frustration(self.state.frustration_level + PERCEPTION_FAILURE_PENALTY)
            self.trigger("error", "Could not read the page")
            return Perception(url=url)
        if not self.request.vision:
            perception.screenshot = None
        return perception

    async def decide(self, step: int, perception: Perception, focused: list) -> Decision:
        ctx = build_decision_context(
            persona=self.persona,
            profile=self.profile,
            goal=self.request.goal,
            task_type=self.task_type,
            step=step,
            state=self.state,
            perception=perception,
            focused_elements=focused,
            emotions=self.emotions,
            emotion_summary=describe_emotional_state(self.emotions),
        )
        try:
            raw = await maybe_await(self.orch.reasoner.propose_decision(ctx))
        except Exception as e:
            self.record_error(e, f"Step {step}: decide", "decision")
            self.trigger("error", "Could not decide what to do")
            return Decision()

        decision, problems = parse_decision(raw)
        if problems and self.orch.strict_decisions:
            self.record_error(MalformedDecision(problems), f"Step {step}: decide", "decision")
            return Decision()
        if problems and self.orch.verbose:
            _log(f"  decision problems: {'; '.join(problems)}")
        return decision

    async def execute(self, step: int, decision: Decision):
        state   = self.state
        action  = decision.parsed_action()
        context = f"Step {step}: {decision.action}"
        previous_ok = state.memory.last_action_succeeded()

        if not action.known:
            state.memory.actions_attempted.append(
                ActionAttempt(action=decision.action, target=decision.action_target, success=False)
            )
            self.trigger("failure", f"Unknown action {action.kind!r}")
            return

        delay = action_delay_ms(action, self.motor)
        if delay:
            await self.orch.sleep(delay / 1000)

        executor = self.orch.executor
        try:
            if action.kind == "click":
                raw = executor.click(action.target)
            elif action.kind == "hover":
                raw = executor.hover(action.target)
            elif action.kind == "hoverclick":
                if action.parent:
                    await maybe_await(executor.hover(action.parent))
                raw = executor.click(action.target)
            elif action.kind == "fill":
                raw = executor.fill(action.target, action.value or "")
            else:
                raw = executor.navigate(action.target)
            outcome = ActionOutcome.coerce(await maybe_await(raw))
        except Exception as e:
            self.record_error(e, context, "execution")
            state.set_frustration(state.frustration_level + EXECUTION_FAILURE_PENALTY)
            state.memory.actions_attempted.append(
                ActionAttempt(action=decision.action, target=decision.action_target, success=False)
            )
            self.trigger("error", str(e) or None)
            return

        state.memory.actions_attempted.append(
            ActionAttempt(action=decision.action, target=decision.action_target,
                          success=outcome.success, url=outcome.url)
        )
        if outcome.success:
            self.trigger("success")
            if previous_ok is False:
                self.trigger("recovery")
        else:
            self.trigger("failure", outcome.detail or None)

        if outcome.url and outcome.url != state.current_url:
            if state.memory.visit(outcome.url) and self.orch.verbose:
                _log(f"  backtracked to {outcome.url}")

    def appraise(self, prev_confusion: float, prev_progress: float):
        """Turn this step's state changes into emotional triggers."""
        state = self.state
        if state.goal_progress > prev_progress:
            self.trigger("progress")
        elif state.goal_progress < prev_progress:
            self.trigger("setback")
        if prev_confusion <= FRICTION_LEVEL < state.confusion_level:
            self.trigger("confusion_onset")
        elif prev_confusion - state.confusion_level >= CLARITY_DROP:
            self.trigger("clarity")
        if state.patience_remaining < TIME_PRESSURE_AT:
            self.trigger("time_pressure")

    def note_friction(self, step: int, decision: Decision, prev_confusion: float, prev_frustration: float):
        state = self.state
        confusion_crossed   = prev_confusion <= FRICTION_LEVEL < state.confusion_level
        frustration_crossed = prev_frustration <= FRICTION_LEVEL < state.frustration_level
        elevated = state.confusion_level > FRICTION_LEVEL or state.frustration_level > FRICTION_LEVEL

        if decision.friction_description and elevated:
            kind = "confusing_ui"
        elif frustration_crossed:
            kind = "frustration"
        elif confusion_crossed:
            kind = "confusion"
        else:
            return

        self.friction.append(FrictionPoint(
            step=step,
            url=state.current_url,
            type=kind,
            frustration_increase=round(state.frustration_level - prev_frustration, 4),
            monologue=decision.monologue,
            element=decision.friction_element,
            description=decision.friction_description,
        ))

    # ── Result ─────────────────────────────────────────────────────────────────

    def result(self) -> JourneyResult:
        state = self.state
        mode  = state.cognitive_mode
        fatigue = state.decision_fatigue
        confusion = self.confusion_trace or [state.confusion_level]
        frustration = self.frustration_trace or [state.frustration_level]

        summary = {
            "avg_confusion":          round(sum(confusion) / len(confusion), 4),
            "max_frustration":        max(frustration),
            "backtrack_count":        state.memory.backtrack_count,
            "decisions_made":         fatigue.decisions_made,
            "final_decision_fatigue": fatigue.fatigue_level,
            "was_choosing_defaults":  fatigue.choosing_defaults,
            "time_in_system1_ms":     round(mode.time_in_system1, 3),
            "time_in_system2_ms":     round(mode.time_in_system2, 3),
            "dominant_emotion":       self.emotions.dominant,
            "abandonment_modifier":   round(calculate_abandonment_modifier(self.emotions), 4),
            "emotional_event_count":  len(self.events),
        }

        return JourneyResult(
            persona=self.persona.name,
            goal=self.request.goal,
            goal_achieved=self.goal_achieved,
            final_state=state,
            abandonment_reason=self.reason,
            abandonment_message=self.message,
            total_time=round(self.orch.clock() - self.started, 3),
            step_count=state.step_count,
            friction_points=list(self.friction),
            full_monologue=list(self.monologue),
            emotional_events=list(self.events),
            final_emotions=self.emotions.to_dict(),
            steps=list(self.steps),
            summary=summary,
            task_type=self.task_type,
            start_url=self.request.start_url,
            persona_meta=self.persona.descriptor(),
        )


def run_journey(
    executor,
    reasoner,
    persona,
    goal: str,
    start_url: str,
    trait_overrides: "dict | None" = None,
    max_steps: int = 50,
    max_time: "float | None" = None,
    vision: bool = False,
    **options,
) -> JourneyResult:
    """Synchronous wrapper: build an orchestrator from ``options`` and run one journey."""
    request = JourneyRequest(
        persona=persona, goal=goal, start_url=start_url, trait_overrides=trait_overrides,
        max_steps=max_steps, max_time=max_time, vision=vision,
    )
    orch = JourneyOrchestrator(executor, reasoner, **options)
    return asyncio.run(orch.run(request))
