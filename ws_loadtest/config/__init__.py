"""Configuration: runtime settings and structured logging."""
