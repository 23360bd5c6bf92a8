from journeysim.journey.collaborators import (
    ActionOutcome,
    ExecutionFailure,
    Perception,
    PerceptionFailure,
    StaticSiteExecutor,
)
from journeysim.journey.comparison import compare_personas, compare_personas_async, format_comparison_report
from journeysim.journey.decision import Action, Decision, MalformedDecision, parse_action, parse_decision
from journeysim.journey.orchestrator import (
    JourneyOrchestrator,
    JourneyRequest,
    check_abandonment,
    run_journey,
)
from journeysim.journey.policies import FocusPolicy, ScriptedPolicy
