"""Snapshot validation."""

from budget_engine.validation.validator import SnapshotValidator

__all__ = ["SnapshotValidator"]
