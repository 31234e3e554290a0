"""Infrastructure layer components."""

from .asyncio_scheduler import AsyncioScheduler
from .cue_dispatchers import AudioCueDispatcher, HapticCueDispatcher, VoiceCueDispatcher
from .json_session_history_repository import JsonFileSessionHistoryRepository
from .local_session_history_repository import LocalSessionHistoryRepository
from .virtual_scheduler import VirtualScheduler

__all__ = [
    "AsyncioScheduler",
    "VirtualScheduler",
    "AudioCueDispatcher",
    "HapticCueDispatcher",
    "VoiceCueDispatcher",
    "JsonFileSessionHistoryRepository",
    "LocalSessionHistoryRepository",
]
