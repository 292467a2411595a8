from __future__ import annotations

import logging
from typing import Protocol

from domain.order_flags import FlagChange, OrderFlags

from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class OrderFlagsGateway(Protocol):
    def set_order_flags(self, order_id: str, flags: OrderFlags) -> None: ...


class SupabaseOrderFlagsGateway(OrderFlagsGateway):
    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    def set_order_flags(self, order_id: str, flags: OrderFlags) -> None:
        self.client.rpc(
            "set_order_flags",
            {
                "p_order_id": order_id,
                "p_is_settled": flags.is_settled,
                "p_is_refunded": flags.is_refunded,
                "p_refund_notes": flags.notes_to_send,
            },
        )


class OptimisticFlagToggle:
    """Shows a flag change immediately and undoes it if the remote write fails."""

    def __init__(self, gateway: OrderFlagsGateway, order_id: str, flags: OrderFlags) -> None:
        self.gateway = gateway
        self.order_id = order_id
        self.current = flags

    def execute(self, change: FlagChange) -> OrderFlags:
        if change.order_id != self.order_id:
            msg = f"change targets order {change.order_id}, toggle holds {self.order_id}"
            raise ValueError(msg)
        if change.before != self.current:
            msg = "change was built from a stale flag state"
            raise ValueError(msg)

        self.current = change.apply()
        try:
            self.gateway.set_order_flags(change.order_id, change.after)
        except Exception:
            self.current = change.revert()
            logger.warning("Reverted flags for order %s after failed update", change.order_id)
            raise
        return self.current


__all__ = ["OptimisticFlagToggle", "OrderFlagsGateway", "SupabaseOrderFlagsGateway"]
