"""
matplotlib front end for the annotation session.

The viewer only translates window events into session events and redraws
after every transition; it holds no annotation state of its own.

Controls:
- Left / right arrow: previous / next frame (wrapping across segments)
- Left click on the image: mark the head point, jump to next unmarked frame
- Close the window: finish the session
"""

import logging
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from .session import AnnotationSession, Event, SessionState, Signal

logger = logging.getLogger(__name__)

KEY_EVENTS = {
    'left': Event.prev,
    'right': Event.next,
}


class FrameViewer:
    """
    Single-window frame editor bound to an AnnotationSession.

    Usage:
        viewer = FrameViewer(session, [seg.frames for seg in segments])
        viewer.show()  # blocks until the window is closed
    """

    def __init__(
        self,
        session: AnnotationSession,
        frame_blocks: Sequence[np.ndarray],
        title: str = 'Frame Editor'
    ):
        """
        Args:
            session: Session receiving the translated events
            frame_blocks: Per segment, frames of shape (n_frames, H, W, 3)
            title: Window title
        """
        if len(frame_blocks) != session.state.n_segments:
            raise ValueError(
                f"{len(frame_blocks)} frame blocks for "
                f"{session.state.n_segments} segments"
            )

        self.session = session
        self.frame_blocks = frame_blocks

        self.fig, self.ax = plt.subplots(num=title)
        self.ax.set_axis_off()

        state = session.state
        self.image = self.ax.imshow(self._frame(state))
        self.text = self.ax.text(
            20, 20, '', color='yellow', fontsize=12, fontweight='bold'
        )
        (self.marker,) = self.ax.plot([], [], 'ro', fillstyle='none')

        self.fig.canvas.mpl_connect('key_press_event', self._on_key)
        self.fig.canvas.mpl_connect('button_press_event', self._on_click)
        self.fig.canvas.mpl_connect('close_event', self._on_close)

        session.add_observer(self.render)
        self.render(state, Signal.NONE)

    def _frame(self, state: SessionState) -> np.ndarray:
        return self.frame_blocks[state.current_segment][state.current_frame]

    def render(self, state: SessionState, signal: Signal):
        """Redraw the current frame, overlay text and point marker."""
        if signal is Signal.CLOSED:
            return

        self.image.set_data(self._frame(state))
        self.text.set_text(
            f"Segment: {state.current_segment + 1}, "
            f"Frame: {state.current_frame + 1}"
        )

        point = state.current_point()
        if point is None:
            self.marker.set_visible(False)
        else:
            self.marker.set_data([point[0]], [point[1]])
            self.marker.set_visible(True)

        if signal is Signal.SEGMENT_COMPLETE:
            self.ax.set_title('All frames in this segment have been marked')
        else:
            self.ax.set_title('')

        self.fig.canvas.draw_idle()

    def _on_key(self, event):
        make_event = KEY_EVENTS.get(event.key)
        if make_event is not None:
            self.session.dispatch(make_event())

    def _on_click(self, event):
        if event.inaxes is not self.ax or event.button != 1:
            return
        if event.xdata is None or event.ydata is None:
            return
        self.session.dispatch(Event.mark(event.xdata, event.ydata))

    def _on_close(self, event):
        self.session.dispatch(Event.close())

    def show(self):
        """Block until the window is closed."""
        plt.show()
