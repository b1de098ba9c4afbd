"""Vehicle state machine: validates inventory lifecycle transitions.

acquired -> in_preparation -> for_sale -> sold
"""

from loyal_auto.domain.enums import Actor, VehicleStatus
from loyal_auto.domain.errors import InvalidTransitionError, ValidationError

# ---------------------------------------------------------------------------
# Transition map: from_status -> {to_status: set_of_allowed_actors}
# ---------------------------------------------------------------------------

S = VehicleStatus
A = Actor

TRANSITION_MAP: dict[VehicleStatus, dict[VehicleStatus, set[Actor]]] = {
    S.ACQUIRED: {
        S.IN_PREPARATION: {A.OPERATOR, A.ADMIN, A.SYSTEM},
    },
    S.IN_PREPARATION: {
        S.FOR_SALE: {A.OPERATOR, A.ADMIN},
    },
    S.FOR_SALE: {
        S.SOLD: {A.SYSTEM},  # only through the sell operation
    },
}

TERMINAL_STATES: set[VehicleStatus] = {S.SOLD}

# Admin corrections may move freely between these
ADMIN_OVERRIDE_STATES: set[VehicleStatus] = {
    s for s in VehicleStatus if s not in TERMINAL_STATES
}


def parse_vehicle_status(value) -> VehicleStatus:
    """Turn a raw request value into a VehicleStatus or raise a 400."""
    try:
        return VehicleStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid status: {value}")


class VehicleStateMachine:
    """Validates vehicle status transitions."""

    def validate_transition(
        self,
        current_status: VehicleStatus,
        target_status: VehicleStatus,
        actor: Actor,
    ) -> bool:
        """Return True if the transition is valid. Raise InvalidTransitionError if not."""
        if current_status == target_status:
            raise InvalidTransitionError(
                current_status, target_status, "Vehicle is already in this status"
            )

        if current_status in TERMINAL_STATES:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"No transitions allowed from {current_status.value}",
            )

        # Admin override between non-terminal states (corrections, rollbacks)
        if actor == A.ADMIN and target_status in ADMIN_OVERRIDE_STATES:
            return True

        allowed_targets = TRANSITION_MAP.get(current_status, {})
        if target_status not in allowed_targets:
            raise InvalidTransitionError(
                current_status,
                target_status,
                f"Transition from {current_status.value} to {target_status.value} is not allowed",
            )

        allowed_actors = allowed_targets[target_status]
        if actor not in allowed_actors:
            if target_status == S.SOLD:
                reason = "Use the sell operation to mark a vehicle as sold"
            else:
                reason = (
                    f"Actor {actor.value} is not permitted for this transition "
                    f"(allowed: {', '.join(sorted(a.value for a in allowed_actors))})"
                )
            raise InvalidTransitionError(current_status, target_status, reason)

        return True

    def get_allowed_transitions(
        self,
        current_status: VehicleStatus,
        actor: Actor,
    ) -> list[VehicleStatus]:
        """Return list of valid next states for the given actor from the current status."""
        if current_status in TERMINAL_STATES:
            return []

        if actor == A.ADMIN:
            return [s for s in VehicleStatus if s in ADMIN_OVERRIDE_STATES and s != current_status]

        return [
            target
            for target, actors in TRANSITION_MAP.get(current_status, {}).items()
            if actor in actors
        ]
