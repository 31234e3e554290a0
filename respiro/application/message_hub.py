"""Fan-out of outbound messages to connected clients."""

import asyncio
import logging

from ..domain.entities.biofeedback import BiofeedbackSample
from ..domain.entities.messages import (
    BiofeedbackSampleMessage,
    OutboundMessage,
    PhaseChangeMessage,
)
from ..domain.entities.phase import BreathingPhase

logger = logging.getLogger(__name__)


class MessageHub:
    """
    Delivers outbound messages to every subscribed client queue.

    Each WebSocket connection subscribes its own bounded queue. A slow
    client loses its oldest messages rather than growing memory, since
    samples arrive at 20 Hz whether anyone reads them or not.
    """

    def __init__(self, max_queue_size: int = 500):
        self.max_queue_size = max_queue_size
        self._subscribers: list[asyncio.Queue[OutboundMessage]] = []

    def subscribe(self) -> "asyncio.Queue[OutboundMessage]":
        queue: asyncio.Queue[OutboundMessage] = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.append(queue)
        logger.info(f"Client subscribed ({len(self._subscribers)} connected)")
        return queue

    def unsubscribe(self, queue: "asyncio.Queue[OutboundMessage]") -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)
            logger.info(f"Client unsubscribed ({len(self._subscribers)} connected)")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, message: OutboundMessage) -> None:
        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
                logger.debug("Client queue full, dropped oldest message")
            queue.put_nowait(message)


class SessionEventPublisher:
    """Engine listener forwarding phases and samples to the hub."""

    def __init__(self, hub: MessageHub):
        self._hub = hub

    def on_phase(self, phase: BreathingPhase, duration_ms: int) -> None:
        self._hub.publish(PhaseChangeMessage(phase=phase, duration_ms=duration_ms))

    def on_sample(self, sample: BiofeedbackSample) -> None:
        self._hub.publish(BiofeedbackSampleMessage(sample=sample))

    def on_session_stopped(self) -> None:
        pass
