"""Shared utilities for tutorsync."""

from tutorsync.utils.time import utc_now

__all__ = ["utc_now"]
