"""Tests for MessageHub fan-out and the session event publisher."""

import pytest

from respiro.application.message_hub import MessageHub, SessionEventPublisher
from respiro.domain.entities import (
    ArousalState,
    BiofeedbackSample,
    BiofeedbackSampleMessage,
    BreathingPhase,
    NoticeMessage,
    PhaseChangeMessage,
)


@pytest.mark.asyncio
async def test_publish_reaches_every_subscriber():
    """Each subscriber gets its own copy of the stream."""
    hub = MessageHub()
    first = hub.subscribe()
    second = hub.subscribe()

    hub.publish(NoticeMessage("hello"))

    assert (await first.get()).message == "hello"
    assert (await second.get()).message == "hello"
    assert hub.subscriber_count == 2


@pytest.mark.asyncio
async def test_full_queue_drops_oldest():
    """A slow client loses its oldest messages."""
    hub = MessageHub(max_queue_size=2)
    queue = hub.subscribe()

    for text in ("one", "two", "three"):
        hub.publish(NoticeMessage(text))

    assert queue.qsize() == 2
    assert (await queue.get()).message == "two"
    assert (await queue.get()).message == "three"


@pytest.mark.asyncio
async def test_unsubscribe():
    """Unsubscribed queues receive nothing."""
    hub = MessageHub()
    queue = hub.subscribe()
    hub.unsubscribe(queue)
    hub.unsubscribe(queue)

    hub.publish(NoticeMessage("ignored"))

    assert queue.empty()
    assert hub.subscriber_count == 0


@pytest.mark.asyncio
async def test_event_publisher():
    """Phases and samples become outbound messages."""
    hub = MessageHub()
    queue = hub.subscribe()
    publisher = SessionEventPublisher(hub)

    publisher.on_phase(BreathingPhase.INHALE, 5000)
    publisher.on_sample(
        BiofeedbackSample(
            timestamp=0.05, heart_rate=75, hrv=50, rsa_amplitude=0.0, arousal_state=ArousalState.BALANCED
        )
    )
    publisher.on_session_stopped()

    phase = await queue.get()
    assert isinstance(phase, PhaseChangeMessage)
    assert phase.phase_change.duration_ms == 5000

    sample = await queue.get()
    assert isinstance(sample, BiofeedbackSampleMessage)
    assert sample.update.heart_rate == 75
    assert queue.empty()
