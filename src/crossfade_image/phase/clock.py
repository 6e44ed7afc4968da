"""
Fade Clocks
===========

Time sources that advance a fade progress value over wall-clock time.

A fade runs linearly from 1→0 (direction OUT) or 0→1 (direction IN)
over a duration, reporting every intermediate value to ``on_progress``
and finishing with ``on_complete``. Curves are applied by the consumer,
not the clock.

Implementations:
    - AsyncioFadeClock: ticks with ``loop.call_later`` at a fixed interval
    - ManualFadeClock: advanced explicitly by the host's own frame loop

Design Rules:
    - Starting a run jumps to the run's start value and cancels any
      previous run; a cancelled run never reports again
    - Reported values are monotone in the run's direction
    - ``jump_to`` sets the value immediately without callbacks
"""

import asyncio
import logging
import time
from typing import Callable, Optional, Protocol

from crossfade_image.models.view import FadeDirection


logger = logging.getLogger(__name__)


ProgressCallback = Callable[[float], None]
CompleteCallback = Callable[[], None]


class FadeClock(Protocol):
    """Protocol for fade clocks."""

    @property
    def value(self) -> float:
        """Current progress value in [0, 1]."""
        ...

    @property
    def running(self) -> bool:
        """Whether a run is in progress."""
        ...

    def run(
        self,
        direction: FadeDirection,
        duration: float,
        on_progress: ProgressCallback,
        on_complete: CompleteCallback,
    ) -> None:
        """
        Start a fade run, replacing any run in progress.

        Args:
            direction: OUT runs 1→0, IN runs 0→1
            duration: Seconds for the full run (> 0)
            on_progress: Called with each new value
            on_complete: Called once when the target value is reached
        """
        ...

    def jump_to(self, value: float) -> None:
        """Stop any run and set the value immediately."""
        ...

    def stop(self) -> None:
        """Stop any run without further callbacks."""
        ...


class _FadeRun:
    """State of one linear run from ``start`` to ``target``."""

    __slots__ = ("start", "target", "duration", "elapsed", "on_progress", "on_complete")

    def __init__(
        self,
        direction: FadeDirection,
        duration: float,
        on_progress: ProgressCallback,
        on_complete: CompleteCallback,
    ) -> None:
        self.start = 1.0 if direction is FadeDirection.OUT else 0.0
        self.target = 1.0 - self.start
        self.duration = duration
        self.elapsed = 0.0
        self.on_progress = on_progress
        self.on_complete = on_complete

    @property
    def fraction(self) -> float:
        if self.duration <= 0:
            return 1.0
        return min(1.0, self.elapsed / self.duration)

    @property
    def value(self) -> float:
        if self.fraction >= 1.0:
            return self.target
        return self.start + (self.target - self.start) * self.fraction

    @property
    def finished(self) -> bool:
        return self.fraction >= 1.0


class ManualFadeClock:
    """
    Fade clock driven by explicit ``advance`` calls.

    Suited to hosts that own a render loop and to tests.

    Example:
        clock = ManualFadeClock()
        clock.run(FadeDirection.IN, 0.5, on_progress, on_complete)
        clock.advance(0.25)   # on_progress(0.5)
        clock.advance(0.25)   # on_progress(1.0), on_complete()
    """

    def __init__(self, value: float = 1.0) -> None:
        self._value = value
        self._run: Optional[_FadeRun] = None

    @property
    def value(self) -> float:
        return self._value

    @property
    def running(self) -> bool:
        return self._run is not None

    def run(
        self,
        direction: FadeDirection,
        duration: float,
        on_progress: ProgressCallback,
        on_complete: CompleteCallback,
    ) -> None:
        fade = _FadeRun(direction, duration, on_progress, on_complete)
        self._run = fade
        self._value = fade.start
        if fade.finished:
            self._finish(fade)

    def advance(self, seconds: float) -> None:
        """
        Advance the running fade by ``seconds``.

        Args:
            seconds: Elapsed time since the last advance (>= 0)
        """
        if seconds < 0:
            raise ValueError("seconds must be >= 0")
        fade = self._run
        if fade is None:
            return
        fade.elapsed += seconds
        self._value = fade.value
        fade.on_progress(self._value)
        if fade.finished and self._run is fade:
            self._finish(fade)

    def jump_to(self, value: float) -> None:
        self._run = None
        self._value = value

    def stop(self) -> None:
        self._run = None

    def _finish(self, fade: _FadeRun) -> None:
        self._run = None
        self._value = fade.target
        fade.on_complete()


class AsyncioFadeClock:
    """
    Fade clock ticking on the running asyncio event loop.

    Each tick reads the monotonic time, reports the interpolated value and
    reschedules itself until the run completes.

    Attributes:
        tick_interval: Seconds between ticks (default ~60 Hz)
    """

    def __init__(
        self,
        tick_interval: float = 1 / 60,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        time_source: Callable[[], float] = time.monotonic,
    ) -> None:
        if tick_interval <= 0:
            raise ValueError("tick_interval must be positive")
        self.tick_interval = tick_interval
        self._loop = loop
        self._time = time_source
        self._value: float = 1.0
        self._run: Optional[_FadeRun] = None
        self._started_at: float = 0.0
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def value(self) -> float:
        return self._value

    @property
    def running(self) -> bool:
        return self._run is not None

    def run(
        self,
        direction: FadeDirection,
        duration: float,
        on_progress: ProgressCallback,
        on_complete: CompleteCallback,
    ) -> None:
        self.stop()
        fade = _FadeRun(direction, duration, on_progress, on_complete)
        self._value = fade.start
        if fade.finished:
            self._value = fade.target
            on_complete()
            return

        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        self._run = fade
        self._started_at = self._time()
        self._handle = self._loop.call_later(self.tick_interval, self._tick, fade)

    def _tick(self, fade: _FadeRun) -> None:
        if self._run is not fade:
            return
        fade.elapsed = self._time() - self._started_at
        self._value = fade.value
        fade.on_progress(self._value)

        if self._run is not fade:
            return
        if fade.finished:
            self._run = None
            self._handle = None
            fade.on_complete()
        else:
            self._handle = self._loop.call_later(self.tick_interval, self._tick, fade)

    def jump_to(self, value: float) -> None:
        self.stop()
        self._value = value

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._run = None
