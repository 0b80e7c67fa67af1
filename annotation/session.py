"""
Annotation session state machine.

The annotator walks through the frames of every extracted trial segment and
clicks the head position. All behaviour is expressed as a pure transition
function over an immutable SessionState, so navigation and auto-advance can
be exercised without a window:

    state, signal = transition(state, Event.mark(120.5, 88.0))

AnnotationSession wraps the state for the GUI: it applies events one at a
time and notifies observers (the renderer, the persistence hook) after each
transition. Indices are 0-based; the viewer shows them 1-based.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class EventType(Enum):
    """User input understood by the session."""
    PREV = "prev"
    NEXT = "next"
    MARK = "mark"
    CLOSE = "close"


class Signal(Enum):
    """Notable outcome of a transition."""
    NONE = "none"
    SEGMENT_COMPLETE = "segment_complete"
    CLOSED = "closed"


@dataclass(frozen=True)
class Event:
    """Input event; ``point`` is set for MARK only."""
    type: EventType
    point: Optional[Tuple[float, float]] = None

    @classmethod
    def prev(cls) -> 'Event':
        return cls(EventType.PREV)

    @classmethod
    def next(cls) -> 'Event':
        return cls(EventType.NEXT)

    @classmethod
    def mark(cls, x: float, y: float) -> 'Event':
        return cls(EventType.MARK, (float(x), float(y)))

    @classmethod
    def close(cls) -> 'Event':
        return cls(EventType.CLOSE)


@dataclass(frozen=True)
class SessionState:
    """
    Position of the annotator and the points marked so far.

    Attributes:
        current_segment: Segment shown (0-based)
        current_frame: Frame within the segment (0-based)
        points: One (n_frames, 2) array per segment, NaN = unmarked
        closed: True once the session has been closed
    """
    current_segment: int
    current_frame: int
    points: Tuple[np.ndarray, ...]
    closed: bool = False

    @classmethod
    def initial(cls, points: Sequence[np.ndarray]) -> 'SessionState':
        if not points or any(len(p) == 0 for p in points):
            raise ValueError("Every segment needs at least one frame")
        return cls(0, 0, tuple(np.array(p, dtype=float) for p in points))

    @property
    def n_segments(self) -> int:
        return len(self.points)

    def frame_count(self, segment: Optional[int] = None) -> int:
        if segment is None:
            segment = self.current_segment
        return len(self.points[segment])

    def current_point(self) -> Optional[Tuple[float, float]]:
        point = self.points[self.current_segment][self.current_frame]
        if np.isnan(point).any():
            return None
        return float(point[0]), float(point[1])

    def unmarked_frames(self, segment: Optional[int] = None) -> np.ndarray:
        if segment is None:
            segment = self.current_segment
        return np.nonzero(np.isnan(self.points[segment]).any(axis=1))[0]


def _prev(state: SessionState) -> SessionState:
    if state.current_frame > 0:
        return replace(state, current_frame=state.current_frame - 1)

    segment = (state.current_segment - 1) % state.n_segments
    return replace(
        state,
        current_segment=segment,
        current_frame=state.frame_count(segment) - 1
    )


def _next(state: SessionState) -> SessionState:
    if state.current_frame < state.frame_count() - 1:
        return replace(state, current_frame=state.current_frame + 1)

    segment = (state.current_segment + 1) % state.n_segments
    return replace(state, current_segment=segment, current_frame=0)


def _mark(state: SessionState, point: Tuple[float, float]) -> Tuple[SessionState, Signal]:
    segment_points = state.points[state.current_segment].copy()
    segment_points[state.current_frame] = point

    points = list(state.points)
    points[state.current_segment] = segment_points
    state = replace(state, points=tuple(points))

    unmarked = state.unmarked_frames()
    if len(unmarked) == 0:
        return state, Signal.SEGMENT_COMPLETE

    return replace(state, current_frame=int(unmarked[0])), Signal.NONE


def transition(state: SessionState, event: Event) -> Tuple[SessionState, Signal]:
    """
    Apply one input event.

    Args:
        state: Current session state
        event: Input event

    Returns:
        Tuple of (new_state, signal). A closed session ignores further
        events and reports Signal.CLOSED.
    """
    if state.closed:
        return state, Signal.CLOSED

    if event.type is EventType.PREV:
        return _prev(state), Signal.NONE
    if event.type is EventType.NEXT:
        return _next(state), Signal.NONE
    if event.type is EventType.MARK:
        if event.point is None:
            raise ValueError("MARK event requires a point")
        return _mark(state, event.point)
    if event.type is EventType.CLOSE:
        return replace(state, closed=True), Signal.CLOSED

    raise ValueError(f"Unknown event type: {event.type}")


Observer = Callable[[SessionState, Signal], None]


class AnnotationSession:
    """
    Event dispatcher around the annotation state machine.

    Usage:
        session = AnnotationSession(initial_points)
        session.add_observer(renderer.render)
        session.dispatch(Event.next())
    """

    def __init__(self, points: Sequence[np.ndarray]):
        """
        Args:
            points: Initial (n_frames, 2) point array per segment,
                NaN for frames still to be annotated
        """
        self.state = SessionState.initial(points)
        self._observers: List[Observer] = []

        logger.info(
            f"Annotation session: {self.state.n_segments} segments, "
            f"{sum(len(self.state.unmarked_frames(s)) for s in range(self.state.n_segments))} "
            f"frames left to mark"
        )

    def add_observer(self, observer: Observer):
        """Register a callable run after every transition."""
        self._observers.append(observer)

    @property
    def closed(self) -> bool:
        return self.state.closed

    def dispatch(self, event: Event) -> Signal:
        """Apply an event and notify observers."""
        if self.state.closed:
            logger.debug(f"Ignoring {event.type.value} on closed session")
            return Signal.CLOSED

        self.state, signal = transition(self.state, event)

        if signal is Signal.SEGMENT_COMPLETE:
            logger.info(
                f"All frames in segment {self.state.current_segment + 1} "
                f"have been marked"
            )
        elif signal is Signal.CLOSED:
            logger.info("Annotation session closed")

        for observer in self._observers:
            observer(self.state, signal)

        return signal
