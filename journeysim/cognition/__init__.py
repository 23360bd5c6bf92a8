from journeysim.cognition.emotions import (
    EmotionalConfig,
    EmotionalEvent,
    EmotionalState,
    apply_emotional_trigger,
    calculate_abandonment_modifier,
    calculate_decision_speed_modifier,
    calculate_exploration_tendency,
    create_emotional_config,
    create_initial_emotional_state,
    decay_emotions,
    describe_emotional_state,
    should_consider_abandonment,
)
from journeysim.cognition.fatigue import CognitiveMode, DecisionFatigue, update_cognitive_mode
from journeysim.cognition.focus import (
    FOCUS_HIERARCHY_PRESETS,
    FocusHierarchy,
    calculate_focus_priority,
    filter_by_attention,
    get_focus_hierarchy,
    get_scan_order,
    infer_task_type_from_goal,
)
from journeysim.cognition.motor import (
    MotorProfile,
    calculate_fitts_movement_time,
    calculate_typing_time,
    motor_profile,
)
from journeysim.cognition.state import CognitiveState, FrictionPoint, JourneyResult, StepRecord
