"""
Contract tests for NowPlayingStateManager.

Tests cover:
- State created on started, cleared on ended
- Ended for a clip that is not current is ignored
- Listener notification and isolation
"""

from dataclasses import FrozenInstanceError
from unittest.mock import Mock

import pytest

from soundboard.playback.controller import PlaybackController
from soundboard.state.now_playing_state import NowPlayingState, NowPlayingStateManager


class TestStateLifecycle:
    """Tests for state transitions driven by playback notifications."""

    def test_started_creates_state(self):
        manager = NowPlayingStateManager()

        manager.on_playback_started("Alice")

        state = manager.get_state()
        assert state.clip_name == "Alice"
        assert state.started_at > 0

    def test_ended_clears_state(self):
        manager = NowPlayingStateManager()
        manager.on_playback_started("Alice")

        manager.on_playback_ended("Alice")

        assert manager.get_state() is None

    def test_new_clip_replaces_previous(self):
        manager = NowPlayingStateManager()
        manager.on_playback_started("Alice")

        manager.on_playback_started("Bob")

        assert manager.get_state().clip_name == "Bob"

    def test_ended_for_other_clip_ignored(self):
        manager = NowPlayingStateManager()
        manager.on_playback_started("Bob")

        manager.on_playback_ended("Alice")

        assert manager.get_state().clip_name == "Bob"

    def test_state_is_immutable(self):
        state = NowPlayingState(clip_name="Alice", started_at=1.0)

        with pytest.raises(FrozenInstanceError):
            state.clip_name = "Bob"

    def test_clear_state(self):
        manager = NowPlayingStateManager()
        manager.on_playback_started("Alice")

        manager.clear_state()

        assert manager.get_state() is None


class TestStateListeners:
    """Tests for change subscribers."""

    def test_listener_receives_changes(self):
        manager = NowPlayingStateManager()
        callback = Mock()
        manager.add_listener(callback)

        manager.on_playback_started("Alice")
        manager.on_playback_ended("Alice")

        assert callback.call_count == 2
        assert callback.call_args_list[0].args[0].clip_name == "Alice"
        assert callback.call_args_list[1].args[0] is None

    def test_ignored_end_does_not_notify(self):
        manager = NowPlayingStateManager()
        manager.on_playback_started("Bob")
        callback = Mock()
        manager.add_listener(callback)

        manager.on_playback_ended("Alice")

        callback.assert_not_called()

    def test_failing_listener_does_not_block_others(self):
        manager = NowPlayingStateManager()
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        manager.add_listener(failing)
        manager.add_listener(healthy)

        manager.on_playback_started("Alice")

        healthy.assert_called_once()
        assert manager.get_state().clip_name == "Alice"

    def test_removed_listener_not_called(self):
        manager = NowPlayingStateManager()
        callback = Mock()
        manager.add_listener(callback)
        manager.remove_listener(callback)

        manager.on_playback_started("Alice")

        callback.assert_not_called()

    @pytest.mark.asyncio
    async def test_controller_drives_state(self, catalog, buffer_store, device, rng):
        manager = NowPlayingStateManager()
        controller = PlaybackController(catalog, buffer_store, device, listener=manager, rng=rng)

        await controller.play("Alice")
        assert manager.get_state().clip_name == "Alice"

        await controller.play("Bob")
        assert manager.get_state().clip_name == "Bob"

        device.last_handle.finish()
        assert manager.get_state() is None

    @pytest.mark.asyncio
    async def test_highlight_cleared_when_replacement_plays_nothing(self, catalog, buffer_store, device, rng):
        manager = NowPlayingStateManager()
        controller = PlaybackController(catalog, buffer_store, device, listener=manager, rng=rng)
        await controller.play("Alice")
        controller.set_filter("x.mp3")

        assert controller.play("Alice") is None

        assert not controller.is_playing()
        assert manager.get_state() is None
