"""Upstream exchange clients."""
