"""
Manual head-point annotation.

This package implements the interactive part of the workflow:
1. A pure state machine over navigation and point marking
2. Persistence of the marked points as a .mat table
3. A matplotlib window that feeds input events into the session

The viewer is imported lazily by callers so that the state machine and the
store can be used without a display.
"""

from .point_store import PointStore
from .session import (
    AnnotationSession,
    Event,
    EventType,
    SessionState,
    Signal,
    transition
)

__all__ = [
    'PointStore',
    'AnnotationSession',
    'Event',
    'EventType',
    'SessionState',
    'Signal',
    'transition',
]
