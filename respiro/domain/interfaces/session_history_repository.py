"""Session history repository interface."""

from typing import Protocol, runtime_checkable

from ..entities.session_summary import SavedSession


@runtime_checkable
class SessionHistoryRepository(Protocol):
    """Protocol defining the interface for finished-session storage.

    Implementations keep an ordered list of summaries, newest first,
    under a storage namespace.
    """

    async def save_session(self, session: SavedSession) -> None:
        """Prepend a finished session to the history.

        Args:
            session: The session summary to save.
        """
        ...

    async def get_history(self) -> list[SavedSession]:
        """Return all saved sessions, newest first.

        Returns:
            list[SavedSession]: The saved sessions.
        """
        ...

    async def clear(self) -> None:
        """Delete every saved session in the namespace."""
        ...
