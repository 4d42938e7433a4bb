"""Upstream-facing relay services."""
