#!/usr/bin/env python3
"""
Physics Module for the Skirmish simulation kernel.

Implements the planar kinematics every entity shares:
- 2D vector operations for locations and velocities
- Polar acceleration (thrust and drag are applied as magnitude + angle)
- Linear extrapolation of a location over a fraction of a turn

The world is a bounded rectangle with the origin in the top-left corner,
x growing right and y growing down. Units are abstract map units per turn.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


# =============================================================================
# VECTOR2D CLASS
# =============================================================================

@dataclass
class Vector2D:
    """
    2D vector for locations and velocities on the map.

    Velocities are expressed in map units per turn, so moving a location by
    its velocity for time 1.0 advances it one full turn.
    """
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: Vector2D) -> Vector2D:
        """Vector addition."""
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        """Vector subtraction."""
        return Vector2D(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> Vector2D:
        """Scalar multiplication."""
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2D:
        """Right scalar multiplication."""
        return self.__mul__(scalar)

    def __eq__(self, other: object) -> bool:
        """Equality check with tolerance."""
        if not isinstance(other, Vector2D):
            return False
        eps = 1e-10
        return abs(self.x - other.x) < eps and abs(self.y - other.y) < eps

    @property
    def magnitude(self) -> float:
        """Vector magnitude (length)."""
        return math.sqrt(self.x**2 + self.y**2)

    @property
    def angle(self) -> float:
        """Heading in radians, measured from +x toward +y."""
        return math.atan2(self.y, self.x)

    @property
    def is_zero(self) -> bool:
        """True only for an exactly zero vector."""
        return self.x == 0 and self.y == 0

    def distance_to(self, other: Vector2D) -> float:
        """Distance to another point."""
        return (self - other).magnitude

    def accelerated_by(self, magnitude: float, angle_rad: float) -> Vector2D:
        """Return this velocity after a push of `magnitude` along `angle_rad`."""
        return Vector2D(
            self.x + magnitude * math.cos(angle_rad),
            self.y + magnitude * math.sin(angle_rad),
        )

    def moved_by(self, velocity: Vector2D, time: float) -> Vector2D:
        """Return this location extrapolated along `velocity` for `time` turns."""
        return Vector2D(self.x + velocity.x * time, self.y + velocity.y * time)

    def copy(self) -> Vector2D:
        """Return an independent copy."""
        return Vector2D(self.x, self.y)

    def to_tuple(self) -> tuple[float, float]:
        """Convert to tuple."""
        return (self.x, self.y)

    @classmethod
    def from_tuple(cls, t: tuple[float, float]) -> Vector2D:
        """Create from tuple."""
        return cls(t[0], t[1])

    @classmethod
    def zero(cls) -> Vector2D:
        """Zero vector."""
        return cls(0.0, 0.0)

    def __repr__(self) -> str:
        return f"Vector2D({self.x:.6g}, {self.y:.6g})"


# =============================================================================
# KINEMATICS
# =============================================================================

def apply_drag(velocity: Vector2D, drag: float) -> Vector2D:
    """
    Slow a velocity down by a fixed amount.

    Args:
        velocity: Current velocity.
        drag: Speed removed per turn.

    Returns:
        The decelerated velocity, or zero if the speed did not exceed drag.
    """
    if velocity.magnitude <= drag:
        return Vector2D.zero()
    return velocity.accelerated_by(drag, velocity.angle + math.pi)
