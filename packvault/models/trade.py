from enum import Enum

from packvault.models.errors import AlreadyResolved


class TradeStatus(str, Enum):
    """
    Lifecycle of a trade request.

    pending -> accepted and pending -> rejected are the only transitions.
    Both targets are terminal.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not TradeStatus.PENDING

    def can_transition(self, target: "TradeStatus") -> bool:
        return target in _TRANSITIONS[self]

    def transition(self, target: "TradeStatus", trade_id: int | None = None) -> "TradeStatus":
        """Return `target` if the move is allowed, else raise AlreadyResolved."""
        if not self.can_transition(target):
            raise AlreadyResolved(trade_id, self.value)
        return target


_TRANSITIONS: dict[TradeStatus, frozenset[TradeStatus]] = {
    TradeStatus.PENDING: frozenset({TradeStatus.ACCEPTED, TradeStatus.REJECTED}),
    TradeStatus.ACCEPTED: frozenset(),
    TradeStatus.REJECTED: frozenset(),
}
