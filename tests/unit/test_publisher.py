"""Unit tests for RecorderEventPublisher."""

import uuid
import pytest
from pubsub import pub

from manuscript.models.events import RecorderEvent
from manuscript.models.session import RecorderState
from manuscript.recorder import RecorderEventPublisher


@pytest.mark.unit
def test_publishes_to_topic():
    topic = f"test.recorder.{uuid.uuid4().hex}"
    received = []

    def listener(event):
        received.append(event)

    pub.subscribe(listener, topic)
    publisher = RecorderEventPublisher(topic)
    event = RecorderEvent(event_id="e1", event_type="paused", state=RecorderState.PAUSED)

    publisher.publish_recorder_event(event)

    assert received == [event]
    pub.unsubscribe(listener, topic)


@pytest.mark.unit
def test_recorder_events_reach_subscribers(recorder):
    topic = f"test.recorder.{uuid.uuid4().hex}"
    received = []

    def listener(event):
        received.append(event.event_type)

    pub.subscribe(listener, topic)
    recorder.on_event = RecorderEventPublisher(topic).publish_recorder_event

    recorder.start()
    recorder.stop()

    assert received == ["started", "stopped"]
    pub.unsubscribe(listener, topic)
