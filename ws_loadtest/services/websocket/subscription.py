"""JSON-RPC subscribe request formatting."""

from __future__ import annotations

from typing import Any, Iterator, List, Tuple

from ...config.logging import get_logger
from ...models.frames import SubscribeRequest

logger = get_logger(__name__)


def _logs_params() -> List[Any]:
    return ["logs", {"topics": [None]}]


# Types with a fixed parameter shape; anything else is passed through by name.
SUBSCRIPTION_PARAMS = {
    "newHeads": lambda: ["newHeads"],
    "newPendingTransactions": lambda: ["newPendingTransactions"],
    "logs": _logs_params,
}


def build_subscription_params(subscription_type: str) -> List[Any]:
    """Parameter payload for a subscription type.

    Returns a fresh list on every call so requests never share mutable state.
    """
    factory = SUBSCRIPTION_PARAMS.get(subscription_type)
    if factory is None:
        return [subscription_type]
    return factory()


def build_subscribe_request(request_id: int, subscription_type: str) -> SubscribeRequest:
    """Build an ``eth_subscribe`` request for one subscription instance."""
    request = SubscribeRequest(
        request_id=request_id,
        subscription_type=subscription_type,
        params=build_subscription_params(subscription_type),
    )
    logger.debug(
        "build_subscribe_request",
        request_id=request_id,
        subscription_type=subscription_type,
    )
    return request


def iter_subscription_plan(
    subscription_types: List[str], sub_count: int
) -> Iterator[Tuple[str, int]]:
    """Yield ``(type, instance)`` pairs in send order, instances numbered from 1."""
    for subscription_type in subscription_types:
        for instance in range(1, sub_count + 1):
            yield subscription_type, instance
