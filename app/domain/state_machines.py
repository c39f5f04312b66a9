"""State machines for domain entities.

Deterministic state machine for the order lifecycle. Admin users may only
move an order along the transitions declared here.
"""

from enum import Enum

from app.domain.exceptions import ValidationError


# ============================================================================
# Order State Machine
# ============================================================================


class OrderStatus(str, Enum):
    """Order lifecycle states.

    State diagram:
        PENDING ──────────────────────────────────────► CANCELLED
          │                                              ▲   │
          │ confirm                                      │   │ refund
          ▼                                              │   ▼
        CONFIRMED ───────────────────────────────────►───┤ REFUNDED
          │                                              │   ▲
          │ prepare                                      │   │
          ▼                                              │   │
        PREPARING ───────────────────────────────────►───┘   │
          │                                                  │
          │ ready                                            │
          ▼                                                  │
        READY_FOR_PICKUP ─► PICKED_UP ─► IN_TRANSIT ─► DELIVERED
    """

    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    READY_FOR_PICKUP = "ready_for_pickup"
    PICKED_UP = "picked_up"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _ORDER_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["OrderStatus"]:
        """Get list of valid target states.

        Returns:
            List of states that can be transitioned to, sorted by value.
        """
        return sorted(_ORDER_TRANSITIONS.get(self, set()), key=lambda s: s.value)

    def transition_to(self, target: "OrderStatus", order_id: str) -> "OrderStatus":
        """Validate a transition and return the new state.

        Args:
            target: Requested state.
            order_id: Order being changed (for error context).

        Returns:
            The target state.

        Raises:
            ValidationError: If the transition is not allowed.
        """
        if not self.can_transition_to(target):
            allowed = [s.value for s in self.allowed_transitions()]
            raise ValidationError(
                f"Cannot transition Order({order_id}) from '{self.value}' "
                f"to '{target.value}'. Allowed transitions: {allowed}",
                details={
                    "entity_type": "Order",
                    "entity_id": order_id,
                    "current_state": self.value,
                    "target_state": target.value,
                    "allowed_transitions": allowed,
                },
            )
        return target


# Order state transitions (defined outside enum to avoid Enum restrictions)
_ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED},
    OrderStatus.READY_FOR_PICKUP: {OrderStatus.PICKED_UP},
    OrderStatus.PICKED_UP: {OrderStatus.IN_TRANSIT},
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: {OrderStatus.REFUNDED},
    OrderStatus.CANCELLED: {OrderStatus.REFUNDED},
    OrderStatus.REFUNDED: set(),  # Terminal state
}


class StoreStatus(str, Enum):
    """Store lifecycle states. Only ACTIVE stores are listable."""

    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    CLOSED = "closed"
