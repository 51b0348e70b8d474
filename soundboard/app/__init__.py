from soundboard.app.soundboard import Soundboard

__all__ = ["Soundboard"]
