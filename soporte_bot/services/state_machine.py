from enum import Enum


class FlowStep(str, Enum):
    IDLE = "idle"
    AWAITING_CATEGORY = "awaiting_category"
    AWAITING_DETAIL = "awaiting_detail"
    AWAITING_ESCALATION = "awaiting_escalation"


# The menu can be reopened from any step by a greeting or support keyword.
VALID_TRANSITIONS = {
    FlowStep.IDLE: [FlowStep.AWAITING_CATEGORY],
    FlowStep.AWAITING_CATEGORY: [FlowStep.AWAITING_CATEGORY, FlowStep.AWAITING_DETAIL],
    FlowStep.AWAITING_DETAIL: [FlowStep.AWAITING_CATEGORY, FlowStep.AWAITING_ESCALATION],
    FlowStep.AWAITING_ESCALATION: [FlowStep.AWAITING_CATEGORY, FlowStep.IDLE],
}


class InvalidTransitionError(Exception):
    def __init__(self, from_step: FlowStep, to_step: FlowStep):
        self.from_step = from_step
        self.to_step = to_step
        super().__init__(f"Invalid transition: {from_step.value} -> {to_step.value}")


def can_transition(from_step: FlowStep, to_step: FlowStep) -> bool:
    """Check if transition is valid."""
    allowed = VALID_TRANSITIONS.get(from_step, [])
    return to_step in allowed


def transition(from_step: FlowStep, to_step: FlowStep) -> FlowStep:
    """Perform step transition. Raises InvalidTransitionError if not allowed."""
    if not can_transition(from_step, to_step):
        raise InvalidTransitionError(from_step, to_step)
    return to_step


def open_menu(current_step: FlowStep) -> FlowStep:
    """Show the category menu and wait for a digit."""
    return transition(current_step, FlowStep.AWAITING_CATEGORY)


def select_category(current_step: FlowStep) -> FlowStep:
    """Category chosen, wait for the free-text detail."""
    return transition(current_step, FlowStep.AWAITING_DETAIL)


def capture_detail(current_step: FlowStep) -> FlowStep:
    """Detail stored, summary shown, wait for si/no."""
    return transition(current_step, FlowStep.AWAITING_ESCALATION)


def close_ticket(current_step: FlowStep) -> FlowStep:
    """Escalation answered, back to idle."""
    return transition(current_step, FlowStep.IDLE)
