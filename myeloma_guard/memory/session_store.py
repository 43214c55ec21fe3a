"""
Session Store

Keeps one WorkflowController per intake session, in memory only.
Provides a SessionStore class with methods for creation, lookup, removal,
per-state counts, and oldest-first eviction once the store is full.
"""

from __future__ import annotations

import logging
import uuid
from collections import Counter, OrderedDict
from typing import Optional

from myeloma_guard.config import settings
from myeloma_guard.core.workflow import WorkflowController
from myeloma_guard.models.schemas import WorkflowState

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory store of intake sessions."""

    def __init__(self, max_sessions: Optional[int] = None) -> None:
        self._sessions: OrderedDict[str, WorkflowController] = OrderedDict()
        self._max_sessions = max_sessions or settings.MAX_SESSIONS

    def create(self) -> WorkflowController:
        """Start a new session with a blank record.

        Returns:
            The new session's controller.
        """
        session_id = uuid.uuid4().hex
        controller = WorkflowController(session_id)
        self._sessions[session_id] = controller
        self._evict()
        logger.info("Created session %s (%d active)", session_id, len(self._sessions))
        return controller

    def get(self, session_id: str) -> Optional[WorkflowController]:
        """Look up a session by ID.

        Args:
            session_id: The unique session identifier.

        Returns:
            The controller if found, otherwise None.
        """
        return self._sessions.get(session_id)

    def _evict(self) -> None:
        """Drop the oldest idle sessions beyond the configured limit."""
        excess = len(self._sessions) - self._max_sessions
        if excess <= 0:
            return
        for session_id in list(self._sessions):
            if excess <= 0:
                break
            if self._sessions[session_id].state is WorkflowState.ANALYZING:
                continue
            del self._sessions[session_id]
            excess -= 1
            logger.info("Evicted session %s", session_id)

    def drop(self, session_id: str) -> bool:
        """Remove a single session.

        Args:
            session_id: The unique session identifier.

        Returns:
            True if the session existed.
        """
        return self._sessions.pop(session_id, None) is not None

    def counts_by_state(self) -> dict[WorkflowState, int]:
        counter = Counter(c.state for c in self._sessions.values())
        return {state: counter.get(state, 0) for state in WorkflowState}

    def clear_all(self) -> int:
        """Clear all sessions and return how many were dropped."""
        count = len(self._sessions)
        self._sessions.clear()
        return count

    def __len__(self) -> int:
        return len(self._sessions)


# Module-level singleton instance
session_store = SessionStore()
