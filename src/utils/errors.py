# src/utils/errors.py
from typing import Optional

class AgentError(Exception):
    """Base for all agent-related errors."""
    def __init__(self, message: str, *, original: Optional[Exception] = None):
        super().__init__(message)
        self.original = original

class GenerationFailure(AgentError):
    """
    The generation client could not produce usable structured data
    (backend error, non-JSON text, missing top-level keys).
    """
    def __init__(self, message: str, *, stage: Optional[str] = None, original: Optional[Exception] = None):
        super().__init__(message, original=original)
        self.stage = stage

    def __str__(self) -> str:
        base = super().__str__()
        if self.stage:
            base = f"[{self.stage}] {base}"
        if self.original is not None:
            base = f"{base}: {self.original}"
        return base

class PipelineError(AgentError):
    pass

class DataSourceError(AgentError):
    pass

class ConfigError(AgentError):
    pass

# helper builder
def wrap_exc(msg: str, exc: Exception, exc_type=AgentError) -> AgentError:
    # return a typed exception while attaching original
    return exc_type(msg, original=exc)
