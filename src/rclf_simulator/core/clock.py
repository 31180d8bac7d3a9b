"""
Simulation Clock
================

Maps real elapsed time onto simulated process time.

TIME SCALING
============

    effective_seconds = real_delta_ms / 1000 × speed
    sim_seconds       = effective_seconds × 14 400

so one real second at 1× speed covers four simulated hours, and a simulated
day passes every six real seconds.

Cumulative simulated time only moves forward. A zero delta is a no-op and a
negative delta (clock skew in the external scheduler) is treated as zero.

License: MIT
"""

import math
from dataclasses import dataclass

from .config import TimeConstants


@dataclass(frozen=True)
class ClockStep:
    """Time covered by one tick."""

    effective_seconds: float  # Real seconds scaled by speed
    sim_seconds: float  # Simulated process seconds


@dataclass(frozen=True)
class ElapsedTime:
    """Elapsed simulated time broken down for display."""

    months: int
    days: int  # Remaining days within the current month
    hours: int  # Remaining hours within the current day

    def format(self) -> str:
        """
        Format as ``"2m 5d"``, ``"5d"`` or, during the first day, ``"7h"``.

        Example:
            >>> ElapsedTime(months=1, days=3, hours=4).format()
            '1m 3d'
            >>> ElapsedTime(months=0, days=0, hours=7).format()
            '7h'
        """
        if self.months == 0 and self.days == 0:
            return f"{self.hours}h"
        label = f"{self.days}d"
        if self.months > 0:
            label = f"{self.months}m " + label
        return label


class SimulationClock:
    """Cumulative simulated-time keeper."""

    def __init__(self, constants: TimeConstants):
        self.constants = constants
        self.sim_seconds = 0.0

    def scale(self, real_delta_ms: float, speed: float) -> ClockStep:
        """Convert a real delta into effective and simulated seconds."""
        real_delta_ms = max(0.0, real_delta_ms)
        effective_seconds = (real_delta_ms / 1000.0) * speed
        return ClockStep(
            effective_seconds=effective_seconds,
            sim_seconds=effective_seconds * self.constants.sim_seconds_per_real_second,
        )

    def advance(self, real_delta_ms: float, speed: float) -> ClockStep:
        """Scale the delta and add it to the cumulative simulated time."""
        step = self.scale(real_delta_ms, speed)
        if step.sim_seconds > 0:
            self.sim_seconds += step.sim_seconds
        return step

    @property
    def sim_days(self) -> float:
        return self.sim_seconds / self.constants.seconds_per_day

    @property
    def current_day(self) -> int:
        return int(math.floor(self.sim_days))

    def elapsed(self) -> ElapsedTime:
        days_total = self.current_day
        hours = int((self.sim_seconds / 3600.0) % 24)
        return ElapsedTime(
            months=days_total // self.constants.days_per_month,
            days=days_total % self.constants.days_per_month,
            hours=hours,
        )

    def reset(self) -> None:
        self.sim_seconds = 0.0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(sim_days={self.sim_days:.3f})"


def validate_clock() -> None:
    """Validate time scaling and elapsed-time formatting."""
    clock = SimulationClock(TimeConstants())

    # Test 1: one real second at 1x is four simulated hours
    step = clock.advance(1000.0, 1.0)
    assert abs(step.sim_seconds - 4 * 3600.0) < 1e-9, "Time scaling wrong"

    # Test 2: zero and negative deltas never move time
    before = clock.sim_seconds
    clock.advance(0.0, 5.0)
    clock.advance(-250.0, 5.0)
    assert clock.sim_seconds == before, "Clock moved backwards or on zero delta"

    # Test 3: speed multiplies simulated time
    step = clock.advance(500.0, 2.0)
    assert abs(step.effective_seconds - 1.0) < 1e-12, "Speed not applied"

    # Test 4: formatting
    assert clock.elapsed().format() == "8h", clock.elapsed().format()
    clock.advance(6000.0 * 40, 1.0)  # 40 more days
    assert clock.elapsed().format() == "1m 10d", clock.elapsed().format()

    print("✓ All clock validations passed")


if __name__ == "__main__":
    validate_clock()
