"""
Fluidized Bed Particle Model
============================

Particle population for visualizing the fluidized-bed reactor: growing
fluorite crystals suspended by the up-flow, and fluid elements tracing the
flow itself. This is a visual model, NOT a fluid-dynamics solver.

Coordinates are screen units with y growing downward. The bed is described
by its center (cx, cy); feed enters at the inlet (cx, cy + 180).

PARTICLE STATE MACHINES
======================

Crystal:   RISING ──(y < cy − 150  or  size ≥ max)──▶ SEDIMENTING   (one-way)

    RISING:       size += growth            (until max)
                  a_y = g · size · s_g − c_d · v_fluid / size
    SEDIMENTING:  a_y = g · k_sed
                  v_y = max(v_y, v_min)

    Drag weakens as the crystal grows, so larger crystals sink more readily.

Fluid:     FLOWING (single state)

    y −= v_fluid · k_rise
    x += sin(y · ω) · A
    alpha −= fade                           (removed at alpha ≤ 0)

Shared fluid velocity per tick:

    v_fluid = Q / Q_ref · speed

License: MIT
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .config import ParticleConstants
from .randomness import RandomSource, NumpyRandomSource

logger = logging.getLogger(__name__)


class ParticleKind(Enum):
    """Particle population type."""

    CRYSTAL = "crystal"
    FLUID = "fluid"


class ParticlePhase(Enum):
    """Physical state of a particle."""

    RISING = "rising"
    SEDIMENTING = "sedimenting"
    FLOWING = "flowing"


@dataclass(frozen=True)
class ParticleSnapshot:
    """Read-only renderable view of one particle."""

    x: float
    y: float
    size: float
    color_class: str
    alpha: float


class Particle:
    """
    Single entity of the fluidized bed.

    Typical Use:
    >>> p = Particle(0.0, 180.0, 1.5, ParticleKind.CRYSTAL, ParticleConstants())
    >>> p.advance(fluid_velocity=4.5, bed_center=(0.0, 0.0))
    >>> p.phase
    <ParticlePhase.RISING: 'rising'>
    """

    def __init__(
        self,
        x: float,
        y: float,
        size: float,
        kind: ParticleKind,
        constants: ParticleConstants,
        vx: float = 0.0,
        vy: float = 0.0,
    ):
        self.x = x
        self.y = y
        self.size = size
        self.kind = kind
        self.constants = constants
        self.vx = vx
        self.vy = vy
        self.alpha = 1.0
        self.phase = (
            ParticlePhase.RISING
            if kind == ParticleKind.CRYSTAL
            else ParticlePhase.FLOWING
        )

    @property
    def sedimenting(self) -> bool:
        return self.phase == ParticlePhase.SEDIMENTING

    def advance(self, fluid_velocity: float, bed_center: Tuple[float, float]) -> None:
        """Move the particle by one tick."""
        if self.kind == ParticleKind.CRYSTAL:
            self._advance_crystal(fluid_velocity, bed_center)
        else:
            self._advance_fluid(fluid_velocity)

    def _advance_crystal(
        self, fluid_velocity: float, bed_center: Tuple[float, float]
    ) -> None:
        c = self.constants

        if self.phase == ParticlePhase.RISING:
            if self.size < c.crystal_max_size:
                self.size = min(c.crystal_max_size, self.size + c.crystal_growth_rate)

            gravity = c.gravity * self.size * c.gravity_size_scale
            drag = c.drag_coefficient * fluid_velocity / self.size
            self.vy += gravity - drag
        else:
            self.vy += c.gravity * c.sediment_gravity_multiplier
            self.vy = max(self.vy, c.min_descent_speed)

        self.x += self.vx
        self.y += self.vy

        # Floc formed or carried above the bed: settle for good
        _, cy = bed_center
        if self.phase == ParticlePhase.RISING and (
            self.y < cy - c.sediment_height or self.size >= c.crystal_max_size
        ):
            self.phase = ParticlePhase.SEDIMENTING
            logger.debug(f"Crystal settling at y={self.y:.1f} size={self.size:.2f}")

    def _advance_fluid(self, fluid_velocity: float) -> None:
        c = self.constants
        self.vy = -fluid_velocity * c.fluid_rise_factor
        self.y += self.vy
        self.x += math.sin(self.y * c.wobble_frequency) * c.wobble_amplitude
        self.alpha -= c.fluid_fade_rate

    def out_of_bounds(self, bed_center: Tuple[float, float]) -> bool:
        _, cy = bed_center
        return (
            self.y > cy + self.constants.lower_bound
            or self.y < cy - self.constants.upper_bound
        )

    def is_depleted(self) -> bool:
        return self.kind == ParticleKind.FLUID and self.alpha <= 0

    @property
    def color_class(self) -> str:
        if self.kind == ParticleKind.FLUID:
            return "fluid"
        return "crystal-settling" if self.sedimenting else "crystal"

    def snapshot(self) -> ParticleSnapshot:
        return ParticleSnapshot(
            x=self.x,
            y=self.y,
            size=self.size,
            color_class=self.color_class,
            alpha=max(0.0, self.alpha),
        )

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(kind={self.kind.value}, "
            f"phase={self.phase.value}, x={self.x:.1f}, y={self.y:.1f}, "
            f"size={self.size:.2f}, alpha={self.alpha:.2f})"
        )


class ParticleSystem:
    """
    Owns the particle population: spawn, advance, cull.

    The population is private; callers get ``ParticleSnapshot`` copies.
    """

    def __init__(
        self, constants: ParticleConstants, rng: Optional[RandomSource] = None
    ):
        self.constants = constants
        self.rng = rng or NumpyRandomSource()
        self._particles: List[Particle] = []

    def fluid_velocity(self, flow_rate: float, speed: float) -> float:
        return (flow_rate / self.constants.reference_flow) * speed

    def update(
        self,
        real_delta_ms: float,
        speed: float,
        flow_rate: float,
        bed_center: Tuple[float, float],
    ) -> None:
        """
        Evolve the population by one tick.

        Motion is per tick; ``real_delta_ms`` is accepted for the scheduler
        contract but only the speed multiplier scales the motion.
        """
        velocity = self.fluid_velocity(flow_rate, speed)

        for particle in self._particles:
            particle.advance(velocity, bed_center)

        self._particles = [
            p
            for p in self._particles
            if not (p.out_of_bounds(bed_center) or p.is_depleted())
        ]

        if self.rng.random() < min(1.0, self.constants.spawn_base_rate * speed):
            self.spawn(bed_center)

    def spawn(self, bed_center: Tuple[float, float]) -> Particle:
        """Add one particle at the jittered inlet."""
        c = self.constants
        cx, cy = bed_center
        half_jitter = c.inlet_jitter / 2.0
        x = cx + self.rng.uniform(-half_jitter, half_jitter)
        y = cy + c.inlet_offset
        vx = self.rng.uniform(-c.drift_speed / 2.0, c.drift_speed / 2.0)

        if self.rng.random() < c.crystal_fraction:
            particle = Particle(
                x,
                y,
                c.crystal_initial_size,
                ParticleKind.CRYSTAL,
                c,
                vx=vx,
                vy=self.rng.uniform(0.0, c.crystal_initial_vy_max),
            )
        else:
            particle = Particle(
                x,
                y,
                self.rng.uniform(c.fluid_min_size, c.fluid_max_size),
                ParticleKind.FLUID,
                c,
                vx=vx,
            )

        return self.add(particle)

    def add(self, particle: Particle) -> Particle:
        """Adopt an externally built particle into the population."""
        self._particles.append(particle)
        return particle

    def snapshots(self) -> List[ParticleSnapshot]:
        return [p.snapshot() for p in self._particles]

    def counts(self) -> Dict[str, int]:
        """Population by color class."""
        counts = {"crystal": 0, "crystal-settling": 0, "fluid": 0}
        for particle in self._particles:
            counts[particle.color_class] += 1
        return counts

    def __len__(self) -> int:
        return len(self._particles)

    def reset(self) -> None:
        self._particles = []


def validate_particles() -> None:
    """
    Validation of the particle state machines.

    Tests:
    1. Crystal at max size is sedimenting and stays so
    2. Fluid fades by a fixed amount and is culled at zero opacity
    3. Culling never skips survivors
    """
    from dataclasses import replace

    constants = ParticleConstants()
    center = (0.0, 0.0)

    # Test 1: one-way sedimentation
    crystal = Particle(0.0, 0.0, constants.crystal_max_size, ParticleKind.CRYSTAL, constants)
    crystal.advance(0.0, center)
    assert crystal.sedimenting, "Crystal at max size should settle"
    for _ in range(20):
        crystal.advance(100.0, center)  # strong up-flow would have kept it rising
        assert crystal.sedimenting, "Sedimentation must be one-way"
        assert crystal.vy >= constants.min_descent_speed

    # Test 2: fluid fade
    quick_fade = replace(constants, fluid_fade_rate=0.25)
    system = ParticleSystem(quick_fade)
    fluid = Particle(0.0, 0.0, 2.0, ParticleKind.FLUID, quick_fade)
    system.add(fluid)
    system.constants = replace(quick_fade, spawn_base_rate=0.0)
    for tick in range(3):
        system.update(16.0, 1.0, 0.0, center)
        assert len(system) == 1, f"Fluid removed early at tick {tick}"
    system.update(16.0, 1.0, 0.0, center)
    assert len(system) == 0, "Depleted fluid not removed"

    # Test 3: culling keeps every in-bounds survivor
    system.reset()
    for y in (0.0, 500.0, 10.0, -600.0, 20.0):
        system.add(Particle(0.0, y, 2.0, ParticleKind.FLUID, system.constants))
    system.update(16.0, 1.0, 0.0, center)
    assert len(system) == 3, "Culling skipped or dropped survivors"

    print("✓ All particle validations passed")


if __name__ == "__main__":
    validate_particles()
