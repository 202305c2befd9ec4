"""Mapping of server-assigned subscription handles to logical types."""

from typing import Dict, Optional


class SubscriptionRegistry:
    """In-memory handle -> logical type registry.

    Entries are created on confirmation and kept for the process lifetime.
    """

    def __init__(self) -> None:
        self._types_by_handle: Dict[str, str] = {}

    def register(self, handle: str, subscription_type: str) -> None:
        """Record the type for a handle; a later call for the same handle wins."""
        self._types_by_handle[handle] = subscription_type

    def lookup(self, handle: str) -> Optional[str]:
        return self._types_by_handle.get(handle)
