"""Errors raised by the domain and application layers."""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """A required argument was missing or blank."""


def require_text(value: str | None, name: str) -> str:
    """Return ``value`` or raise :class:`InvalidArgumentError` when blank."""

    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{name} cannot be null or empty")
    return value


__all__ = ["InvalidArgumentError", "require_text"]
