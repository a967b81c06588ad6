"""Shared helpers for invoking external tools."""
