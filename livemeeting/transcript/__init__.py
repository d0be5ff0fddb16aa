"""Transcript accumulation and overlay windowing."""

from .accumulator import TranscriptAccumulator
from .ring_buffer import OVERLAY_CAPACITY, OverlayRingBuffer
from .overlay import OverlayFeed

__all__ = [
    "TranscriptAccumulator",
    "OVERLAY_CAPACITY",
    "OverlayRingBuffer",
    "OverlayFeed",
]
