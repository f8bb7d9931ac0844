"""Core configuration, models, exceptions and helpers."""
