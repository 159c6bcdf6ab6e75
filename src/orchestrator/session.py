# src/orchestrator/session.py
"""
SessionStore: the single mutable object the rendering layer reads.

Mutation goes through three doors only:
    start_run(query)              -> session id, or None while a run is in flight
    append_log(session_id, entry) -> progress entries for that run
    finish_run(session_id, ...)   -> results + clearing the processing flag
and reset(), which swaps in a brand-new empty session.

Every run gets a fresh session id. Calls tagged with an id that is no longer
current (a run still in flight when the user reset) are dropped.
"""

import uuid
from typing import Optional

from src.orchestrator.state import AgentLogEntry, PipelineResult, Session


def _new_session_id() -> str:
    return uuid.uuid4().hex


class SessionStore:
    def __init__(self):
        self.current = Session(id=_new_session_id())

    @property
    def is_processing(self) -> bool:
        return self.current.is_processing

    def is_current(self, session_id: str) -> bool:
        return self.current.id == session_id

    def reset(self) -> Session:
        """Discard the current session wholesale."""
        self.current = Session(id=_new_session_id())
        return self.current

    def start_run(self, query: str) -> Optional[str]:
        """
        Begin a run. Returns the new session id, or None (no-op) if a run
        is already in progress.
        """
        if self.current.is_processing:
            return None
        self.current = Session(id=_new_session_id(), query=query, is_processing=True)
        return self.current.id

    def append_log(self, session_id: str, entry: AgentLogEntry) -> bool:
        if not self.is_current(session_id):
            return False
        self.current.logs.append(entry)
        return True

    def finish_run(
        self,
        session_id: str,
        result: Optional[PipelineResult] = None,
        error: Optional[str] = None,
    ) -> bool:
        """
        End a run. With a result, publish it; with an error, keep results
        empty and expose the message. The processing flag is cleared either
        way.
        """
        if not self.is_current(session_id):
            return False
        if result is not None:
            self.current.plan = list(result.plan)
            self.current.insights = list(result.insights)
            self.current.recommendations = list(result.recommendations)
        self.current.error = error
        self.current.is_processing = False
        return True
