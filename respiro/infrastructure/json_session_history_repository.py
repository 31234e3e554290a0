"""JSON file implementation of the Session History Repository."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from pydantic import ValidationError

from ..domain.entities.session_summary import SavedSession
from ..domain.interfaces.session_history_repository import SessionHistoryRepository

logger = logging.getLogger(__name__)


class JsonFileSessionHistoryRepository(SessionHistoryRepository):
    """Stores session histories in a local JSON file.

    The file holds an object mapping each storage namespace to its list of
    summaries, newest first. A missing or unreadable file reads as empty;
    writes go through a temporary file that replaces the existing one.
    """

    def __init__(self, path: Union[str, Path], namespace: str = "respiro_sessions_v1"):
        self.path = Path(path)
        self.namespace = namespace

    def _load_all(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Could not read session history from {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp.replace(self.path)

    async def save_session(self, session: SavedSession) -> None:
        """Prepend a session to the namespace's history and write the file.

        Args:
            session: The session summary to save.
        """
        data = self._load_all()
        existing = data.get(self.namespace)
        if not isinstance(existing, list):
            existing = []
        data[self.namespace] = [session.model_dump(), *existing]
        self._write_all(data)
        logger.info(f"Saved session {session.id} to {self.path} [{self.namespace}]")

    async def get_history(self) -> list[SavedSession]:
        """Return the namespace's history, newest first.

        Entries that fail validation are skipped.

        Returns:
            list[SavedSession]: Saved sessions.
        """
        items = self._load_all().get(self.namespace, [])
        if not isinstance(items, list):
            return []

        sessions = []
        for item in items:
            try:
                sessions.append(SavedSession.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping invalid saved session in {self.path}: {e}")
        return sessions

    async def clear(self) -> None:
        """Remove the namespace from the file."""
        data = self._load_all()
        if data.pop(self.namespace, None) is not None:
            self._write_all(data)
