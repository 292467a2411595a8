from __future__ import annotations

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class OrderFlags:
    is_settled: bool = False
    is_refunded: bool = False
    refund_notes: str | None = None

    @property
    def notes_to_send(self) -> str | None:
        # Refund notes are only meaningful on refunded orders.
        return self.refund_notes if self.is_refunded else None


@dataclass(frozen=True)
class FlagChange:
    """A reversible transition between two flag states of one order."""

    order_id: str
    before: OrderFlags
    after: OrderFlags

    def apply(self) -> OrderFlags:
        return self.after

    def revert(self) -> OrderFlags:
        return self.before

    @property
    def is_noop(self) -> bool:
        return self.before == self.after


def toggle_settled(order_id: str, flags: OrderFlags) -> FlagChange:
    return FlagChange(order_id=order_id, before=flags, after=replace(flags, is_settled=not flags.is_settled))


def toggle_refunded(order_id: str, flags: OrderFlags) -> FlagChange:
    return FlagChange(order_id=order_id, before=flags, after=replace(flags, is_refunded=not flags.is_refunded))


__all__ = ["FlagChange", "OrderFlags", "toggle_refunded", "toggle_settled"]
