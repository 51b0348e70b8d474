"""
Shared pytest fixtures for soundboard contract tests.

Contract tests use test doubles (fakes, stubs, mocks) to avoid real dependencies.
No audio hardware, ffmpeg binary or network is used.
"""

import random
from unittest.mock import Mock

import pytest

from soundboard.buffers.buffer_store import BufferStore
from soundboard.catalog.clip_catalog import ClipCatalog
from soundboard.playback.controller import PlaybackController
from soundboard.playback.sequence_player import SequencePlayer
from soundboard.tests.contracts.test_doubles import (
    SAMPLE_DOCUMENT,
    FakeDecoder,
    FakeFetcher,
    GatedFetcher,
    RecordingDevice,
    RecordingListener,
)


@pytest.fixture
def catalog():
    """Catalog with Alice (a.mp3), Bob (x.mp3 only) and Carol (a.mp3 + y.mp3)."""
    return ClipCatalog.load(SAMPLE_DOCUMENT)


@pytest.fixture
def device():
    """Create a recording output device."""
    return RecordingDevice()


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def gated_fetcher():
    """Create a fetcher whose loads resolve only when the test opens them."""
    return GatedFetcher()


@pytest.fixture
def decoder():
    return FakeDecoder()


@pytest.fixture
def buffer_store(fetcher, decoder):
    return BufferStore(fetcher, decoder)


@pytest.fixture
def gated_store(gated_fetcher, decoder):
    return BufferStore(gated_fetcher, decoder)


@pytest.fixture
def listener():
    """Create a listener that records notifications."""
    return RecordingListener()


@pytest.fixture
def mock_listener():
    """Create a mock playback listener for testing."""
    callback = Mock()
    callback.on_playback_started = Mock()
    callback.on_playback_ended = Mock()
    return callback


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def controller(catalog, buffer_store, device, listener, rng):
    return PlaybackController(catalog, buffer_store, device, listener=listener, rng=rng)


@pytest.fixture
def gated_controller(catalog, gated_store, device, listener, rng):
    """Controller whose buffer loads block until the test releases them."""
    return PlaybackController(catalog, gated_store, device, listener=listener, rng=rng)


@pytest.fixture
def sequence(controller, rng):
    return SequencePlayer(controller, pause_seconds=0, rng=rng)


SOUNDBOARD_ENV_VARS = (
    "SOUNDBOARD_ENV_FILE",
    "SOUNDBOARD_CATALOG",
    "SOUNDBOARD_MEDIA_ROOT",
    "SOUNDBOARD_OUTPUT_MODE",
    "SOUNDBOARD_SAMPLE_RATE",
    "SOUNDBOARD_CHANNELS",
    "SOUNDBOARD_SEQUENCE_PAUSE_MS",
    "SOUNDBOARD_PRELOAD",
    "SOUNDBOARD_FETCH_TIMEOUT_SEC",
    "SOUNDBOARD_LOG_LEVEL",
    "SOUNDBOARD_LOG_FILE",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """
    Remove every SOUNDBOARD_* variable for the test and restore afterwards.

    Setting before deleting makes monkeypatch record the original value, so
    variables a loaded .env file adds are removed again on teardown.
    """
    for name in SOUNDBOARD_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return monkeypatch
