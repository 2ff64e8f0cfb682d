"""Shared utilities."""

from averzo.shared.utils.datetime import utc_now

__all__ = ["utc_now"]
