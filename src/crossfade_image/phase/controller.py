"""
Phase Controller
================

Deterministic state machine sequencing the cross-fade of one image.

Transition Rules:
    START     -> COMPLETED  frame already present OR error already known
    START     -> WAITING    otherwise
    WAITING   -> COMPLETED  error AND no error view (nothing to fade into)
    WAITING   -> FADE_OUT   frame or error, placeholder configured
    WAITING   -> FADE_IN    frame or error, no placeholder
    FADE_OUT  -> FADE_IN    clock reached 0 (or fade-out duration is zero)
    FADE_IN   -> COMPLETED  clock reached 1 (or fade-in duration is zero)
    COMPLETED is absorbing; later frames never re-trigger a fade

Tie-break:
    The error flag is checked before the frame flag, so a frame and an
    error recorded before the same evaluation resolve as an error.

Coefficient:
    ``fade_progress`` is the clock's linear value during FADE_OUT/FADE_IN
    and 1.0 in every other phase. ``fade_coefficient`` is that progress
    through the active curve.
"""

import logging
from typing import Callable, List, Optional

from crossfade_image.models.request import ImageRequest
from crossfade_image.models.view import FadeDirection, Phase
from crossfade_image.phase.clock import FadeClock
from crossfade_image.phase.curves import Curve, get_curve


logger = logging.getLogger(__name__)


_FADING = (Phase.FADE_OUT, Phase.FADE_IN)


class PhaseController:
    """
    Computes the visual phase and fade coefficient of one image.

    Driven by three kinds of events: frame arrival, error arrival and
    fade-clock progress/completion. Every change is reported through
    ``on_change``.

    Attributes:
        has_frame: A frame has been received
        has_error: The request is errored
        history: Phases visited, in order (starting with START)

    Example:
        controller = PhaseController(request, ManualFadeClock(), on_change=redraw)
        controller.evaluate()          # START -> WAITING
        controller.notify_frame()      # WAITING -> FADE_IN
    """

    def __init__(
        self,
        request: ImageRequest,
        clock: FadeClock,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.clock = clock
        self.on_change = on_change

        self.has_frame: bool = False
        self.has_error: bool = False
        self.history: List[Phase] = [Phase.START]

        self._phase: Phase = Phase.START
        self._fade_progress: float = 1.0
        self._fade_direction: Optional[FadeDirection] = None
        self._fade_done: bool = False
        self._curve: Optional[Curve] = None
        self._disposed: bool = False

        self.configure(request)

    def configure(self, request: ImageRequest) -> None:
        """
        Apply fade timings and view flags from ``request``.

        A fade already in flight keeps running with its original timing.
        """
        self.fade_out_duration = request.fade_out_duration
        self.fade_out_curve = get_curve(request.fade_out_curve)
        self.fade_in_duration = request.fade_in_duration
        self.fade_in_curve = get_curve(request.fade_in_curve)
        self.has_placeholder_view = request.has_placeholder_view
        self.has_error_view = request.has_error_view

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def fade_direction(self) -> Optional[FadeDirection]:
        """Direction of the fade in flight, None outside fade phases."""
        return self._fade_direction if self._phase in _FADING else None

    @property
    def fade_progress(self) -> float:
        """Linear fade progress; 1.0 whenever no fade is in flight."""
        if self._phase in _FADING:
            return self._fade_progress
        return 1.0

    @property
    def fade_coefficient(self) -> float:
        """Opacity to render with: the progress through the active curve."""
        if self._phase in _FADING and self._curve is not None:
            return self._curve.transform(self._fade_progress)
        return 1.0

    @property
    def showing_placeholder(self) -> bool:
        """Whether the placeholder (rather than target/error) is the subject."""
        if self._phase in (Phase.START, Phase.WAITING, Phase.FADE_OUT):
            return True
        return self.has_error and not self.has_error_view

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

    def notify_frame(self) -> None:
        """A frame arrived."""
        self.has_frame = True
        self.evaluate()

    def notify_error(self) -> None:
        """The request failed."""
        self.has_error = True
        self.evaluate()

    def seed(self, has_error: bool, has_frame: bool = False) -> None:
        """
        Reset the event flags without evaluating.

        Used when the request changes: the error flag is re-read from the
        FailureRegistry and the frame flag reflects the new subscription.
        """
        self.has_error = has_error
        self.has_frame = has_frame

    def evaluate(self) -> Phase:
        """
        Run the transition function until the phase is stable.

        Returns:
            The phase after evaluation
        """
        if self._disposed:
            return self._phase

        changed = False
        while self._step():
            changed = True

        if changed:
            self._notify()
        return self._phase

    def dispose(self) -> None:
        """Stop the clock and ignore further events."""
        if self._disposed:
            return
        self._disposed = True
        self.clock.stop()

    # -------------------------------------------------------------------------
    # Transition function
    # -------------------------------------------------------------------------

    def _step(self) -> bool:
        """Apply at most one transition. Returns True if the phase changed."""
        phase = self._phase

        if phase is Phase.START:
            if self.has_frame or self.has_error:
                self._enter(Phase.COMPLETED)
            else:
                self._enter(Phase.WAITING)
            return True

        if phase is Phase.WAITING:
            if self.has_error and not self.has_error_view:
                self._enter(Phase.COMPLETED)
                return True
            if self.has_frame or self.has_error:
                if self.has_placeholder_view:
                    self._start_fade_out()
                else:
                    self._start_fade_in()
                return True
            return False

        if phase is Phase.FADE_OUT:
            if self._fade_done:
                self._start_fade_in()
                return True
            return False

        if phase is Phase.FADE_IN:
            if self._fade_done:
                self._enter(Phase.COMPLETED)
                return True
            return False

        return False

    def _enter(self, phase: Phase) -> None:
        logger.debug(f"Phase {self._phase.value} -> {phase.value}")
        self._phase = phase
        self.history.append(phase)

    def _start_fade_out(self) -> None:
        # Received image data. Begin placeholder fade-out.
        self._start_fade(Phase.FADE_OUT, FadeDirection.OUT, self.fade_out_duration, self.fade_out_curve)

    def _start_fade_in(self) -> None:
        # Done fading out placeholder. Begin target fade-in.
        self._start_fade(Phase.FADE_IN, FadeDirection.IN, self.fade_in_duration, self.fade_in_curve)

    def _start_fade(
        self,
        phase: Phase,
        direction: FadeDirection,
        duration: float,
        curve: Curve,
    ) -> None:
        self._enter(phase)
        self._fade_direction = direction
        self._curve = curve
        self._fade_done = False

        if duration <= 0:
            target = 0.0 if direction is FadeDirection.OUT else 1.0
            self.clock.jump_to(target)
            self._fade_progress = target
            self._fade_done = True
            return

        self._fade_progress = 1.0 if direction is FadeDirection.OUT else 0.0
        self.clock.run(direction, duration, self._on_clock_progress, self._on_clock_complete)

    def _on_clock_progress(self, value: float) -> None:
        if self._disposed or self._phase not in _FADING:
            return
        self._fade_progress = value
        self._notify()

    def _on_clock_complete(self) -> None:
        if self._disposed or self._phase not in _FADING:
            return
        self._fade_done = True
        self.evaluate()

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()
