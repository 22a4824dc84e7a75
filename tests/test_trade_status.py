"""Tests for the trade status state machine."""

import pytest

from packvault.models.errors import AlreadyResolved
from packvault.models.trade import TradeStatus


class TestTradeStatus:
    def test_pending_is_not_terminal(self) -> None:
        assert not TradeStatus.PENDING.is_terminal

    @pytest.mark.parametrize("status", [TradeStatus.ACCEPTED, TradeStatus.REJECTED])
    def test_resolved_states_are_terminal(self, status: TradeStatus) -> None:
        assert status.is_terminal

    @pytest.mark.parametrize("target", [TradeStatus.ACCEPTED, TradeStatus.REJECTED])
    def test_pending_can_resolve(self, target: TradeStatus) -> None:
        assert TradeStatus.PENDING.transition(target, trade_id=1) is target

    def test_pending_cannot_stay_pending(self) -> None:
        assert not TradeStatus.PENDING.can_transition(TradeStatus.PENDING)

    @pytest.mark.parametrize("current", [TradeStatus.ACCEPTED, TradeStatus.REJECTED])
    @pytest.mark.parametrize("target", list(TradeStatus))
    def test_terminal_states_never_move(
        self, current: TradeStatus, target: TradeStatus
    ) -> None:
        """A resolved trade cannot be resolved again, in either direction."""
        with pytest.raises(AlreadyResolved) as exc_info:
            current.transition(target, trade_id=7)

        assert exc_info.value.trade_id == 7
        assert exc_info.value.status == current.value
        assert exc_info.value.message == f"Trade already {current.value}"

    def test_status_round_trips_from_stored_value(self) -> None:
        assert TradeStatus("accepted") is TradeStatus.ACCEPTED
