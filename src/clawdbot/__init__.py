"""Clawdbot TTS gateway: outbound reply to audio pipeline."""

__version__ = "0.1.0"
