from soundboard.config import SoundboardConfig
from .base_device import BaseDevice
from .null_device import NullDevice


def create_output_device(config: SoundboardConfig) -> BaseDevice:
    """
    Create an output device based on configuration.

    Modes (SOUNDBOARD_OUTPUT_MODE):
        "sounddevice": system audio output through PortAudio (default)
        "null": discard audio; playback timing and notifications still run

    Returns:
        BaseDevice instance configured according to config

    Raises:
        ValueError: If the mode is unknown
    """
    mode = config.output_mode.lower()

    if mode == "null":
        return NullDevice()

    if mode == "sounddevice":
        # Imported here so headless runs never need PortAudio installed
        from .sounddevice_output import SoundDeviceOutput
        return SoundDeviceOutput()

    raise ValueError(f"Unknown output mode: {config.output_mode}")
