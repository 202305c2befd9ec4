"""WebSocket connection lifecycle, subscription issuance and frame classification."""
