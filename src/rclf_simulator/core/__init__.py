"""
Simulation Engine Core Package
==============================

Fluoride removal by calcium-fluoride crystallization in a fluidized-bed
reactor (RCLF), modelled for visualization and rough economic projection.

This package provides:
- Clock: real time scaled into simulated process time
- Chemistry: stoichiometric mass balance and relaxing pH
- Ledger: revenue, cost, avoided-cost savings, rolling-window figures, ROI
- Particles: crystal and fluid elements of the fluidized bed
- Simulation: the integrated engine with a single ``tick`` entry point

USAGE EXAMPLE
============

```python
from rclf_simulator.core import Simulation, ControlInputs, NumpyRandomSource

sim = Simulation(rng=NumpyRandomSource(seed=42), bed_center=(400, 300))
controls = ControlInputs(
    flow_rate=450.0,              # m³/h
    fluoride_concentration=50.0,  # mg/L
    purity_mix=30.0,              # % acid grade
    speed=2.0,
    running=True,
)

# One frame at 60 fps
result = sim.tick(16.7, controls)

print(sim.elapsed_label(), sim.current_ph, sim.window_metrics().profit)
for p in sim.particles():
    draw_circle(p.x, p.y, p.size, p.color_class, p.alpha)
```

ILLUSTRATIVE MODEL
==================

This is NOT a certified process-control model:
- pH is a first-order relaxation toward 8.2 with bounded noise
- Particle motion is a per-tick force balance, not CFD
- Financial figures use fixed prices and a derived fixed cost

DETERMINISM
===========

pH drift and particle spawning draw from an injected ``RandomSource``.
Pass ``NumpyRandomSource(seed=...)`` for reproducible runs or
``ConstantRandomSource(0.5)`` for a noise-free pH.

VALIDATION
==========

Every module ships a ``validate_*`` self-check.

Run validation: `python -m rclf_simulator.core` or call `run_all_validations()`

License: MIT
"""

# Version
__version__ = "1.0.0"

# Configuration
from .config import (
    SimulationConfig,
    StoichiometryConstants,
    MarketPrices,
    FinancialConstants,
    PhysicsConstants,
    ParticleConstants,
    TimeConstants,
    ControlInputs,
    DEFAULT_CONFIG,
)

# Random sources
from .randomness import RandomSource, NumpyRandomSource, ConstantRandomSource

# Time
from .clock import SimulationClock, ClockStep, ElapsedTime, validate_clock

# Chemistry
from .chemistry import (
    ReactionAccumulator,
    ReactionState,
    ReactionStep,
    validate_chemistry,
)

# Economics
from .ledger import (
    FinancialLedger,
    FinancialState,
    DailySnapshot,
    WindowMetrics,
    validate_ledger,
)

# Fluidized bed
from .particles import (
    Particle,
    ParticleKind,
    ParticlePhase,
    ParticleSnapshot,
    ParticleSystem,
    validate_particles,
)

# Integrated engine
from .simulation import Simulation, TickResult, validate_simulation

# Convenience imports
__all__ = [
    # Main engine
    "Simulation",
    "TickResult",
    "ControlInputs",
    # Configuration
    "SimulationConfig",
    "StoichiometryConstants",
    "MarketPrices",
    "FinancialConstants",
    "PhysicsConstants",
    "ParticleConstants",
    "TimeConstants",
    "DEFAULT_CONFIG",
    # Randomness
    "RandomSource",
    "NumpyRandomSource",
    "ConstantRandomSource",
    # Clock
    "SimulationClock",
    "ClockStep",
    "ElapsedTime",
    # Chemistry
    "ReactionAccumulator",
    "ReactionState",
    "ReactionStep",
    # Ledger
    "FinancialLedger",
    "FinancialState",
    "DailySnapshot",
    "WindowMetrics",
    # Particles
    "Particle",
    "ParticleKind",
    "ParticlePhase",
    "ParticleSnapshot",
    "ParticleSystem",
    # Validation functions
    "validate_clock",
    "validate_chemistry",
    "validate_ledger",
    "validate_particles",
    "validate_simulation",
]


def run_all_validations():
    """
    Run all engine validation checks.

    This should be run after any code changes to ensure
    the mass balance and ledger invariants are maintained.
    """
    print("Running Simulation Engine Validation Suite")
    print("=" * 70)

    print("\n1. Clock...")
    validate_clock()

    print("\n2. Chemistry...")
    validate_chemistry()

    print("\n3. Ledger...")
    validate_ledger()

    print("\n4. Particles...")
    validate_particles()

    print("\n5. Integrated Simulation...")
    validate_simulation()

    print("\n" + "=" * 70)
    print("ALL VALIDATIONS PASSED ✓")
    print("=" * 70)


if __name__ == "__main__":
    """Run all validations when package is executed."""
    run_all_validations()
