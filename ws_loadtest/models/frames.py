"""JSON-RPC request and inbound frame models.

Inbound frames are decided once by the event classifier into exactly one of
the frame variants below; nothing downstream re-inspects the raw fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

JSONRPC_VERSION = "2.0"
SUBSCRIBE_METHOD = "eth_subscribe"
NOTIFICATION_METHOD = "eth_subscription"


@dataclass(frozen=True)
class SubscribeRequest:
    """Outbound subscribe request for one subscription instance."""

    request_id: int
    subscription_type: str
    params: Any

    def to_payload(self) -> Dict[str, Any]:
        return {
            "jsonrpc": JSONRPC_VERSION,
            "id": self.request_id,
            "method": SUBSCRIBE_METHOD,
            "params": self.params,
        }


@dataclass(frozen=True)
class Notification:
    """A subscription event pushed by the server.

    ``handle`` is the stringified ``params.subscription`` value (``"null"`` for
    a JSON null), or None when the frame carries no subscription field.
    """

    handle: Optional[str]
    raw: Dict[str, Any] = field(repr=False)


@dataclass(frozen=True)
class Confirmation:
    """Response to a subscribe request carrying the server-assigned handle."""

    request_id: Union[int, float]
    result: Any
    raw: Dict[str, Any] = field(repr=False)


@dataclass(frozen=True)
class ErrorFrame:
    """Error response from the server."""

    request_id: Any
    error: Any
    raw: Dict[str, Any] = field(repr=False)


@dataclass(frozen=True)
class UnclassifiedFrame:
    """A valid JSON object matching none of the known shapes."""

    raw: Dict[str, Any] = field(repr=False)


Frame = Union[Notification, Confirmation, ErrorFrame, UnclassifiedFrame]
