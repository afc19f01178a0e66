"""Authorization flow status and transition helpers."""

from enum import StrEnum


class FlowStatus(StrEnum):
    CREATED = "created"
    URL_GENERATED = "url_generated"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_FLOW_STATUSES = frozenset({FlowStatus.COMPLETED, FlowStatus.FAILED})

ALLOWED_STATUS_TRANSITIONS: dict[FlowStatus, frozenset[FlowStatus]] = {
    FlowStatus.CREATED: frozenset({FlowStatus.URL_GENERATED, FlowStatus.FAILED}),
    FlowStatus.URL_GENERATED: frozenset({FlowStatus.COMPLETED, FlowStatus.FAILED}),
}


def can_transition_status(current_status: FlowStatus, new_status: FlowStatus) -> bool:
    return new_status in ALLOWED_STATUS_TRANSITIONS.get(current_status, frozenset())
