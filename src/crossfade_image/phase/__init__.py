"""
Phase Module
============

Cross-fade sequencing.

    - curves: Easing curves by name
    - clock: FadeClock protocol, AsyncioFadeClock, ManualFadeClock
    - controller: PhaseController state machine
"""

from crossfade_image.phase.clock import AsyncioFadeClock, FadeClock, ManualFadeClock
from crossfade_image.phase.controller import PhaseController
from crossfade_image.phase.curves import CURVES, Cubic, Curve, get_curve


__all__ = [
    "FadeClock",
    "AsyncioFadeClock",
    "ManualFadeClock",
    "PhaseController",
    "Curve",
    "Cubic",
    "CURVES",
    "get_curve",
]
