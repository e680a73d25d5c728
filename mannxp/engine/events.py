"""
mannxp.engine.events — XpAction and XpUpdated
==============================================

The closed set of economic actions that earn XP, and the change event
broadcast on the in-process bus after every successful XP write.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from mannxp.constants import XP_UPDATED_EVENT

__all__ = ["XpAction", "XpUpdated"]


class XpAction(enum.StrEnum):
    """Economic actions that award XP."""

    TRANSFER = "transfer-sent-equivalent"
    MARKETPLACE_PURCHASE = "marketplace-purchase"
    GIFT_RECEIVED = "gift-received"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: XpAction | str) -> XpAction:
        """Return the matching action; anything unknown counts as ``OTHER``."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, slots=True)
class XpUpdated:
    """Payload of the ``xp_updated`` change event."""

    user_id: str
    delta: int
    name: str = XP_UPDATED_EVENT

    def to_dict(self) -> dict:
        return {"user_id": self.user_id, "delta": self.delta}
