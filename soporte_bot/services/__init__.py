from soporte_bot.services.state_machine import (
    FlowStep,
    InvalidTransitionError,
    can_transition,
    capture_detail,
    close_ticket,
    open_menu,
    select_category,
    transition,
)
