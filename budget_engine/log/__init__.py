"""Logging package."""

from budget_engine.log.logger import EngineLogger, configure_logging, get_logger

__all__ = ["EngineLogger", "configure_logging", "get_logger"]
