"""Snapshot module for reading host-exported locator and run indexes."""

from .loader import SnapshotFormatError, load_locators, load_runs, parse_locators, parse_runs

__all__ = ["SnapshotFormatError", "load_locators", "load_runs", "parse_locators", "parse_runs"]
