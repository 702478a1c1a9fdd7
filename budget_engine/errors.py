"""
Engine Exceptions

Engine functions prefer returning result objects (RecalcResult.ok,
import_data -> bool). Exceptions are reserved for record creation and
for callers that explicitly ask for them.
"""


class EngineError(Exception):
    """Base exception for the budget engine."""
    pass


class RecordValidationError(EngineError):
    """A record failed validation (non-positive amount, missing category id...)."""
    
    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = errors or []


class InsufficientDataError(EngineError):
    """Not enough data to run a calculation (e.g. no income in basis month)."""
    pass


class ImportFormatError(EngineError):
    """Imported payload does not have the required shape."""
    pass


class PresetNotFoundError(EngineError, KeyError):
    """Requested category preset does not exist."""
    pass
