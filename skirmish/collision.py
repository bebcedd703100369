"""
Collision-time solver for the Skirmish simulation kernel.

Two circular bodies moving linearly are at distance r when

    |dp + t * dv|^2 = r^2

with dp and dv the differences of their positions and velocities. Expanding
gives the quadratic a*t^2 + b*t + c = 0 where

    a = |dv|^2,  b = 2 * (dp . dv),  c = |dp|^2 - r^2

The solver returns the first time in the future at which the bodies come
within r, rounded to the event time precision so that floating point noise
cannot split physically simultaneous events into separate batches.
"""

from __future__ import annotations

import math
from typing import Optional

from .physics import Vector2D


# =============================================================================
# ROUNDING
# =============================================================================

def round_event_time(t: float, precision: int) -> float:
    """
    Round an event time to 1 / precision, halves away from zero.

    Args:
        t: Raw time within the sub-step.
        precision: Number of representable steps per unit of time.

    Returns:
        The rounded time.
    """
    scaled = t * precision
    if scaled >= 0:
        return math.floor(scaled + 0.5) / precision
    return math.ceil(scaled - 0.5) / precision


# =============================================================================
# SOLVER
# =============================================================================

def collision_time(
    r: float,
    loc1: Vector2D,
    loc2: Vector2D,
    vel1: Vector2D,
    vel2: Vector2D,
    precision: int,
) -> Optional[float]:
    """
    Earliest non-negative time at which two bodies come within distance r.

    Args:
        r: Combined interaction radius.
        loc1: Location of the first body.
        loc2: Location of the second body.
        vel1: Velocity of the first body.
        vel2: Velocity of the second body.
        precision: Event time precision used for rounding.

    Returns:
        The rounded time, 0.0 if the bodies already overlap, or None when
        they never come within r in the future. The caller decides whether
        the time falls inside the current sub-step.
    """
    dx = loc1.x - loc2.x
    dy = loc1.y - loc2.y
    dvx = vel1.x - vel2.x
    dvy = vel1.y - vel2.y

    a = dvx**2 + dvy**2
    b = 2 * (dx * dvx + dy * dvy)
    c = dx**2 + dy**2 - r**2

    if c <= 0.0:
        # Already within r
        return 0.0

    if a == 0.0:
        # No relative motion and currently apart
        return None

    disc = b**2 - 4 * a * c
    if disc < 0.0:
        return None

    if disc == 0.0:
        t = -b / (2 * a)
        return round_event_time(t, precision) if t >= 0.0 else None

    # With c > 0 both roots share a sign; the smaller one is first contact
    t1 = (-b - math.sqrt(disc)) / (2 * a)
    if t1 >= 0.0:
        return round_event_time(t1, precision)
    return None


def might_attack(distance: float, speed1: float, speed2: float, attack_radius: float) -> bool:
    """Cheap reachability filter before solving at the attack radius."""
    return distance <= speed1 + speed2 + attack_radius


def might_collide(distance: float, speed1: float, speed2: float, collision_radius: float) -> bool:
    """Cheap reachability filter before solving at the collision radius."""
    return distance <= speed1 + speed2 + collision_radius
