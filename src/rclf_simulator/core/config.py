"""
Process Configuration for the RCLF Simulator
============================================

Immutable constant bundles for the fluidized-bed fluoride crystallization
process (RCLF: reactor for calcium-fluoride crystallization).

All values are fixed scalars. They are grouped by concern and aggregated in
``SimulationConfig``, which is handed to the engine at construction time.
Derive variants with ``dataclasses.replace``:

```python
from dataclasses import replace
cheap = replace(config, market=replace(config.market, reagent_cost=900.0))
```

UNITS
=====

- Flow rate: m³/h
- Fluoride concentration: mg/L (= g/m³)
- Masses: grams (converted to tons for pricing)
- Prices and costs: BRL
- Particle coordinates: screen units, y grows downward

License: MIT
"""

from dataclasses import dataclass, field

# Molecular weights [g/mol]
F2_MW = 38.0  # Two fluorine atoms
CAF2_MW = 78.0  # Calcium fluoride (fluorite)
CACL2_MW = 111.0  # Calcium chloride (reagent)


@dataclass(frozen=True)
class StoichiometryConstants:
    """
    Mass conversion ratios for Ca²⁺ + 2F⁻ → CaF₂.

    Attributes:
        fluoride_to_fluorite: g CaF₂ produced per g F⁻ removed
        fluoride_to_reagent: g CaCl₂ consumed per g F⁻ removed
    """

    fluoride_to_fluorite: float = CAF2_MW / F2_MW
    fluoride_to_reagent: float = CACL2_MW / F2_MW


@dataclass(frozen=True)
class MarketPrices:
    """Product prices and avoided costs [BRL/ton]."""

    acid_grade_price: float = 5500.0  # Acidspar, >97% purity
    metal_grade_price: float = 3000.0  # Metspar, ~80% purity
    reagent_cost: float = 1100.0  # CaCl₂
    avoided_disposal_cost: float = 7237.5  # Lime sludge avoided per ton of F


@dataclass(frozen=True)
class FinancialConstants:
    capex: float = 1_000_000.0  # [BRL]
    daily_fixed_cost: float = 1500.0  # [BRL/day] energy + labor
    grams_per_ton: float = 1_000_000.0
    history_capacity: int = 40  # Daily snapshots kept
    window_days: int = 30
    min_history_for_window: int = 3
    min_extrapolation_days: float = 0.01


@dataclass(frozen=True)
class PhysicsConstants:
    """
    Process chemistry constants.

    Attributes:
        target_ph: Setpoint the pH relaxes toward
        initial_ph: pH after reset
        ph_relaxation_rate: Fraction of the error removed per step
        ph_noise_amplitude: Maximum absolute perturbation per step
        flow_normalization: Seconds per hour (m³/h × g/m³ → g/s)
    """

    target_ph: float = 8.2
    initial_ph: float = 7.0
    ph_relaxation_rate: float = 0.1
    ph_noise_amplitude: float = 0.01
    flow_normalization: float = 3600.0


@dataclass(frozen=True)
class ParticleConstants:
    """Visual fluidized-bed constants (screen units, per tick)."""

    gravity: float = 0.5
    drag_coefficient: float = 0.1
    gravity_size_scale: float = 0.1
    sediment_gravity_multiplier: float = 2.0
    min_descent_speed: float = 1.0
    reference_flow: float = 100.0  # [m³/h] flow giving unit fluid velocity

    crystal_fraction: float = 0.7
    crystal_initial_size: float = 1.5
    crystal_max_size: float = 5.0
    crystal_growth_rate: float = 0.02
    crystal_initial_vy_max: float = 2.0
    drift_speed: float = 1.0  # Full width of horizontal drift range

    fluid_min_size: float = 1.0
    fluid_max_size: float = 4.0
    fluid_rise_factor: float = 2.0
    fluid_fade_rate: float = 0.01
    wobble_frequency: float = 0.05
    wobble_amplitude: float = 2.0

    spawn_base_rate: float = 0.3
    inlet_offset: float = 180.0  # Inlet sits below the bed center
    inlet_jitter: float = 120.0  # Full width of the spawn window
    sediment_height: float = 150.0  # Crystals above cy - this start settling
    lower_bound: float = 200.0
    upper_bound: float = 250.0


@dataclass(frozen=True)
class TimeConstants:
    sim_seconds_per_real_second: float = 4 * 3600.0
    seconds_per_day: float = 24 * 3600.0
    days_per_month: int = 30


@dataclass(frozen=True)
class SimulationConfig:
    """
    Complete configuration bundle for the simulation engine.

    Combines stoichiometry, market, financial, physics, particle and time
    constants. Frozen: swap it as a whole through ``Simulation.configure``.
    """

    stoichiometry: StoichiometryConstants = field(
        default_factory=StoichiometryConstants
    )
    market: MarketPrices = field(default_factory=MarketPrices)
    financial: FinancialConstants = field(default_factory=FinancialConstants)
    physics: PhysicsConstants = field(default_factory=PhysicsConstants)
    particles: ParticleConstants = field(default_factory=ParticleConstants)
    time: TimeConstants = field(default_factory=TimeConstants)

    def validate(self) -> None:
        """Validate configuration consistency."""
        positive = {
            "stoichiometry.fluoride_to_fluorite": self.stoichiometry.fluoride_to_fluorite,
            "stoichiometry.fluoride_to_reagent": self.stoichiometry.fluoride_to_reagent,
            "financial.capex": self.financial.capex,
            "financial.grams_per_ton": self.financial.grams_per_ton,
            "financial.window_days": self.financial.window_days,
            "physics.flow_normalization": self.physics.flow_normalization,
            "particles.reference_flow": self.particles.reference_flow,
            "particles.crystal_initial_size": self.particles.crystal_initial_size,
            "particles.fluid_min_size": self.particles.fluid_min_size,
            "particles.fluid_fade_rate": self.particles.fluid_fade_rate,
            "time.sim_seconds_per_real_second": self.time.sim_seconds_per_real_second,
            "time.seconds_per_day": self.time.seconds_per_day,
            "time.days_per_month": self.time.days_per_month,
        }
        for name, value in positive.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")

        non_negative = {
            "market.acid_grade_price": self.market.acid_grade_price,
            "market.metal_grade_price": self.market.metal_grade_price,
            "market.reagent_cost": self.market.reagent_cost,
            "market.avoided_disposal_cost": self.market.avoided_disposal_cost,
            "financial.daily_fixed_cost": self.financial.daily_fixed_cost,
            "physics.ph_noise_amplitude": self.physics.ph_noise_amplitude,
            "particles.crystal_growth_rate": self.particles.crystal_growth_rate,
            "particles.spawn_base_rate": self.particles.spawn_base_rate,
        }
        for name, value in non_negative.items():
            if value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")

        if self.financial.history_capacity < 1:
            raise ValueError(
                f"History capacity must be positive, got {self.financial.history_capacity}"
            )
        if self.financial.min_history_for_window < 2:
            raise ValueError("Rolling window needs at least 2 snapshots")
        if not 0.0 < self.physics.ph_relaxation_rate <= 1.0:
            raise ValueError(
                f"pH relaxation rate must be in (0, 1], got {self.physics.ph_relaxation_rate}"
            )
        if not 0.0 <= self.physics.target_ph <= 14.0:
            raise ValueError(f"Target pH out of range: {self.physics.target_ph}")
        if not 0.0 <= self.physics.initial_ph <= 14.0:
            raise ValueError(f"Initial pH out of range: {self.physics.initial_ph}")
        if not 0.0 <= self.particles.crystal_fraction <= 1.0:
            raise ValueError("Crystal fraction must be 0-1")
        if self.particles.crystal_max_size < self.particles.crystal_initial_size:
            raise ValueError(
                f"Crystal max size {self.particles.crystal_max_size} below "
                f"initial size {self.particles.crystal_initial_size}"
            )
        if self.particles.fluid_max_size < self.particles.fluid_min_size:
            raise ValueError("Fluid size range is inverted")


@dataclass
class ControlInputs:
    """
    Operator inputs read on every tick.

    These come from the UI layer (or the command-line driver) and are
    assumed already clamped. ``validate`` is available for callers that
    want fail-fast behavior instead.
    """

    flow_rate: float = 450.0  # [m³/h]
    fluoride_concentration: float = 50.0  # [mg/L]
    purity_mix: float = 0.0  # [% acid grade]
    speed: float = 1.0
    running: bool = False

    def validate(self) -> None:
        """Reject physically meaningless inputs."""
        if not self.flow_rate > 0:
            raise ValueError(f"Flow rate must be positive, got {self.flow_rate}")
        if not self.fluoride_concentration >= 0:
            raise ValueError(
                f"Fluoride concentration cannot be negative: {self.fluoride_concentration}"
            )
        if not 0.0 <= self.purity_mix <= 100.0:
            raise ValueError(f"Purity mix must be 0-100%, got {self.purity_mix}")
        if not self.speed > 0:
            raise ValueError(f"Speed multiplier must be positive, got {self.speed}")


DEFAULT_CONFIG = SimulationConfig()
