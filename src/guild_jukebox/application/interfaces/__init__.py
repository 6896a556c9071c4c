"""
Application Interfaces (Ports)

Abstract interfaces that define contracts between the application
layer and infrastructure adapters. These are the "ports" in
hexagonal architecture.
"""

from guild_jukebox.application.interfaces.audio_resolver import TrackResolver
from guild_jukebox.application.interfaces.voice_adapter import (
    AudioPlayer,
    FinishedCallback,
    VoiceConnection,
    VoiceGateway,
)

__all__ = [
    "TrackResolver",
    "VoiceGateway",
    "VoiceConnection",
    "AudioPlayer",
    "FinishedCallback",
]
