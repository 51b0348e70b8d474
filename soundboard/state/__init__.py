from soundboard.state.now_playing_state import NowPlayingState, NowPlayingStateManager

__all__ = ["NowPlayingState", "NowPlayingStateManager"]
