"""Local in-memory implementation of the Session History Repository."""

from typing import Dict

from ..domain.entities.session_summary import SavedSession
from ..domain.interfaces.session_history_repository import SessionHistoryRepository


class LocalSessionHistoryRepository(SessionHistoryRepository):
    """Local in-memory implementation of the Session History Repository.

    Keeps one list per storage namespace for testing and development
    purposes.
    """

    def __init__(self, namespace: str = "respiro_sessions_v1"):
        """Initialize the repository with an empty history.

        Args:
            namespace: Storage key the history is kept under.
        """
        self.namespace = namespace
        self._histories: Dict[str, list[SavedSession]] = {}

    async def save_session(self, session: SavedSession) -> None:
        """Prepend a session to the namespace's history.

        Args:
            session: The session summary to save.
        """
        existing = self._histories.get(self.namespace, [])
        self._histories[self.namespace] = [session, *existing]

    async def get_history(self) -> list[SavedSession]:
        """Return the namespace's history, newest first.

        Returns:
            list[SavedSession]: Saved sessions.
        """
        return list(self._histories.get(self.namespace, []))

    async def clear(self) -> None:
        """Clear the namespace's history."""
        self._histories.pop(self.namespace, None)
