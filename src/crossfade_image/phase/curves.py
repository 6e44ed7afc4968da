"""
Fade Curves
===========

Easing curves mapping linear fade progress t ∈ [0, 1] to an opacity.

Every curve is monotone non-decreasing with transform(0) == 0 and
transform(1) == 1, so a monotone clock yields a monotone coefficient.

Cubic curves use the standard CSS/Material control points:
    ease_in      Cubic(0.42, 0.0, 1.0, 1.0)
    ease_out     Cubic(0.0, 0.0, 0.58, 1.0)
    ease_in_out  Cubic(0.42, 0.0, 0.58, 1.0)
    ease         Cubic(0.25, 0.1, 0.25, 1.0)
"""

from typing import Dict


class Curve:
    """Base curve: identity on [0, 1] with clamped endpoints."""

    def transform(self, t: float) -> float:
        if t <= 0.0:
            return 0.0
        if t >= 1.0:
            return 1.0
        return self.transform_internal(t)

    def transform_internal(self, t: float) -> float:
        return t


class Linear(Curve):
    def __repr__(self) -> str:
        return "Linear()"


class Decelerate(Curve):
    """Quadratic deceleration: starts fast, slows to a stop."""

    def transform_internal(self, t: float) -> float:
        t = 1.0 - t
        return 1.0 - t * t

    def __repr__(self) -> str:
        return "Decelerate()"


class Cubic(Curve):
    """
    Cubic Bézier from (0, 0) to (1, 1) with control points (a, b) and (c, d).

    transform solves x(s) = t for the curve parameter s by bisection and
    returns y(s).
    """

    _CUBIC_ERROR_BOUND = 1e-6
    _MAX_ITERATIONS = 64

    def __init__(self, a: float, b: float, c: float, d: float) -> None:
        self.a = a
        self.b = b
        self.c = c
        self.d = d

    @staticmethod
    def _evaluate(a: float, b: float, m: float) -> float:
        return 3 * a * (1 - m) * (1 - m) * m + 3 * b * (1 - m) * m * m + m * m * m

    def transform_internal(self, t: float) -> float:
        start = 0.0
        end = 1.0
        midpoint = 0.5
        for _ in range(self._MAX_ITERATIONS):
            midpoint = (start + end) / 2
            estimate = self._evaluate(self.a, self.c, midpoint)
            if abs(t - estimate) < self._CUBIC_ERROR_BOUND:
                break
            if estimate < t:
                start = midpoint
            else:
                end = midpoint
        return self._evaluate(self.b, self.d, midpoint)

    def __repr__(self) -> str:
        return f"Cubic({self.a}, {self.b}, {self.c}, {self.d})"


CURVES: Dict[str, Curve] = {
    "linear": Linear(),
    "decelerate": Decelerate(),
    "ease": Cubic(0.25, 0.1, 0.25, 1.0),
    "ease_in": Cubic(0.42, 0.0, 1.0, 1.0),
    "ease_out": Cubic(0.0, 0.0, 0.58, 1.0),
    "ease_in_out": Cubic(0.42, 0.0, 0.58, 1.0),
}


def get_curve(name: str) -> Curve:
    """
    Look up a curve by name.

    Raises:
        KeyError: If the name is unknown
    """
    try:
        return CURVES[name]
    except KeyError:
        raise KeyError(f"Unknown curve '{name}', expected one of {sorted(CURVES)}") from None
