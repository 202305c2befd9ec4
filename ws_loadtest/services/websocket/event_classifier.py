"""Decoding and classification of inbound JSON-RPC frames."""

from __future__ import annotations

import json
from numbers import Number
from typing import Any, Dict, Union

from ...exceptions import FrameDecodeError
from ...models.frames import (
    NOTIFICATION_METHOD,
    Confirmation,
    ErrorFrame,
    Frame,
    Notification,
    UnclassifiedFrame,
)


def _is_numeric_id(value: Any) -> bool:
    # JSON booleans decode to bool, which is a Number subclass
    return isinstance(value, Number) and not isinstance(value, bool)


def _stringify_handle(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return json.dumps(value) if isinstance(value, (dict, list)) else str(value)


def classify_frame(message: Dict[str, Any]) -> Frame:
    """Classify a decoded frame as exactly one frame variant.

    Order matters: a notification is recognised first, then a result-bearing
    response, then an error. A frame with a non-null result but a non-numeric
    id is not a confirmation and is not reconsidered as an error.

    Args:
        message: JSON object received from the server.

    Returns:
        Notification, Confirmation, ErrorFrame or UnclassifiedFrame.
    """
    if message.get("method") == NOTIFICATION_METHOD:
        params = message.get("params")
        handle = None
        if isinstance(params, dict) and "subscription" in params:
            handle = _stringify_handle(params["subscription"])
        return Notification(handle=handle, raw=message)

    if message.get("result") is not None:
        request_id = message.get("id")
        if _is_numeric_id(request_id):
            return Confirmation(request_id=request_id, result=message["result"], raw=message)
        return UnclassifiedFrame(raw=message)

    if message.get("error") is not None:
        return ErrorFrame(request_id=message.get("id"), error=message["error"], raw=message)

    return UnclassifiedFrame(raw=message)


def decode_frame(data: Union[str, bytes]) -> Frame:
    """Decode a raw WebSocket message and classify it.

    Raises:
        FrameDecodeError: If the message is not valid JSON or not a JSON object.
    """
    try:
        message = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise FrameDecodeError(f"Invalid JSON frame: {e}") from e

    if not isinstance(message, dict):
        raise FrameDecodeError(
            f"Expected a JSON object, got {type(message).__name__}"
        )
    return classify_frame(message)
