"""
state.py — Widget session + headless view model

WidgetSession holds what the save protocol reasons about; WidgetView mirrors
what the page shows. ErrorBanner owns the transient error message and its
auto-dismiss timer.
"""

import threading
from dataclasses import dataclass, field
from typing import Optional

from scorewidget.widget.scoring import score_display, slider_fill

ERROR_DISMISS_SECONDS = 5.0


@dataclass
class WidgetSession:
    account_id: str
    current_score: int = 0
    previous_score: int = 0
    account: dict = field(default_factory=dict)
    # Single save slot: held for the whole re-fetch + PATCH, never queued
    save_slot: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def is_saving(self) -> bool:
        return self.save_slot.locked()


@dataclass
class WidgetView:
    input_value: str = "0"
    slider_value: int = 0
    display_text: str = "Score: 0/100"
    slider_fill: str = "0%"
    loading_visible: bool = False
    error_text: str = ""
    error_visible: bool = False
    edit_button_hidden: bool = False
    input_focused: bool = False

    def render(self, score: int):
        """Point every control at the same score."""
        self.input_value = str(score)
        self.slider_value = score
        self._mirror(score)

    def mirror_from_input(self, score: int):
        # Typed text stays as typed; the slider follows the normalized value
        self.slider_value = score
        self._mirror(score)

    def mirror_from_slider(self, score: int):
        self.input_value = str(score)
        self.slider_value = score
        self._mirror(score)

    def _mirror(self, score: int):
        self.display_text = score_display(score)
        self.slider_fill = slider_fill(score)


class ErrorBanner:
    """User-visible error with auto-dismiss.

    A new message restarts the countdown; a timer left over from an older
    message never hides a newer one.
    """

    def __init__(self, view: WidgetView, timeout: float = ERROR_DISMISS_SECONDS):
        self.view = view
        self.timeout = timeout
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._generation = 0

    def show(self, message: str):
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            self.view.error_text = message
            self.view.error_visible = True
            if self.timeout > 0:
                self._timer = threading.Timer(self.timeout, self._expire, args=(self._generation,))
                self._timer.daemon = True
                self._timer.start()

    def hide(self):
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            self.view.error_visible = False

    def _expire(self, generation: int):
        with self._lock:
            if generation != self._generation:
                return
            self._timer = None
            self.view.error_visible = False

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
