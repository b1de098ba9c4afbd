"""Customer state machine for the credit application workflow.

new -> analysis -> approved | rejected, with rejected reopenable for analysis.
Admins may correct a status to any other status.
"""

from loyal_auto.domain.enums import Actor, CustomerStatus
from loyal_auto.domain.errors import InvalidTransitionError, ValidationError

S = CustomerStatus

# Review flow; admin corrections are not limited to it
TRANSITION_MAP: dict[CustomerStatus, set[CustomerStatus]] = {
    S.NEW: {S.ANALYSIS, S.REJECTED},
    S.ANALYSIS: {S.APPROVED, S.REJECTED},
    S.REJECTED: {S.ANALYSIS},
}


def parse_customer_status(value) -> CustomerStatus:
    """Turn a raw request value into a CustomerStatus or raise a 400."""
    try:
        return CustomerStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


class CustomerStateMachine:
    """Validates customer status transitions."""

    def validate_transition(
        self,
        current_status: CustomerStatus,
        target_status: CustomerStatus,
        actor: Actor = Actor.ADMIN,
    ) -> bool:
        if current_status == target_status:
            raise InvalidTransitionError(
                current_status, target_status, "Customer is already in this status"
            )

        if actor == Actor.ADMIN:
            return True

        allowed = TRANSITION_MAP.get(current_status)
        if not allowed:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"No transitions allowed from {current_status.value}",
            )
        if target_status not in allowed:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Transition from {current_status.value} to {target_status.value} is not allowed",
            )
        return True

    def get_allowed_transitions(
        self,
        current_status: CustomerStatus,
        actor: Actor = Actor.ADMIN,
    ) -> list[CustomerStatus]:
        if actor == Actor.ADMIN:
            return [s for s in CustomerStatus if s != current_status]
        return [s for s in CustomerStatus if s in TRANSITION_MAP.get(current_status, set())]
