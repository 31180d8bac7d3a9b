"""
Chemistry Module for the Fluoride Crystallization Reactor
=========================================================

This module implements the mass balance and pH dynamics of fluoride removal
by calcium-fluoride (fluorite) crystallization in a fluidized bed.

THEORETICAL FOUNDATION
=====================

1. Precipitation reaction:
   CaCl₂ + 2F⁻ → CaF₂↓ + 2Cl⁻

2. Fluoride mass load over a simulated interval Δt:
   m_F = Q · C_F / 3600 · Δt        [g]

   Where:
   - Q: flow rate [m³/h]
   - C_F: fluoride concentration [mg/L = g/m³]
   - 3600 converts the hourly flow to g/s

3. Stoichiometry (fixed mass ratios from molecular weights):
   m_CaF₂  = m_F · 78/38
   m_CaCl₂ = m_F · 111/38

4. pH control loop (first-order low-pass with bounded noise):
   pH ← pH + k · (pH_target − pH) + ε,   ε ∈ [−0.01, +0.01]

   This is an illustrative closed-loop response, NOT a titration model.

License: MIT
"""

from dataclasses import dataclass
from typing import Optional

from .config import PhysicsConstants, StoichiometryConstants
from .randomness import RandomSource, NumpyRandomSource, ConstantRandomSource


@dataclass(frozen=True)
class ReactionStep:
    """
    Incremental masses produced by one accumulator step [g].

    ``mass_acid_grade`` and ``mass_metal_grade`` split the product by the
    purity routing and always sum to ``mass_product_out``.
    """

    mass_fluoride_in: float
    mass_product_out: float
    mass_reagent_used: float
    mass_acid_grade: float = 0.0
    mass_metal_grade: float = 0.0


@dataclass
class ReactionState:
    """Cumulative reactor chemistry [g, pH units]."""

    current_ph: float = 7.0
    total_fluoride_input: float = 0.0
    total_fluorite_output: float = 0.0
    total_reagent_used: float = 0.0
    total_acid_grade: float = 0.0
    total_metal_grade: float = 0.0


class ReactionAccumulator:
    """
    Stoichiometric mass-balance accumulator with relaxing pH.

    Totals grow monotonically while flow and concentration are non-negative.
    Inputs are not validated here: negative flow or concentration is a
    caller contract violation.
    """

    def __init__(
        self,
        stoichiometry: StoichiometryConstants,
        physics: PhysicsConstants,
        rng: Optional[RandomSource] = None,
    ):
        """
        Initialize accumulator.

        Args:
            stoichiometry: Fixed mass ratios
            physics: pH target, relaxation rate and noise amplitude
            rng: Source for the pH perturbation (seeded numpy if None)
        """
        self.stoichiometry = stoichiometry
        self.physics = physics
        self.rng = rng or NumpyRandomSource()
        self.state = ReactionState(current_ph=physics.initial_ph)

    def fluoride_mass(
        self, flow_rate: float, concentration: float, sim_seconds: float
    ) -> float:
        """
        Fluoride mass entering over ``sim_seconds`` of simulated time.

        Example:
            >>> from rclf_simulator.core.config import PhysicsConstants, StoichiometryConstants
            >>> acc = ReactionAccumulator(StoichiometryConstants(), PhysicsConstants())
            >>> acc.fluoride_mass(450.0, 50.0, 3600.0)
            22500.0
        """
        return (
            flow_rate * concentration / self.physics.flow_normalization * sim_seconds
        )

    def step(
        self,
        flow_rate: float,
        concentration: float,
        sim_seconds: float,
        purity_mix: float = 0.0,
    ) -> ReactionStep:
        """
        Advance the mass balance by one interval and relax the pH.

        Args:
            flow_rate: Feed flow [m³/h]
            concentration: Fluoride concentration [mg/L]
            sim_seconds: Simulated interval [s]
            purity_mix: Share of product routed to acid grade [%]

        Returns:
            Incremental masses for this step
        """
        mass_f = self.fluoride_mass(flow_rate, concentration, sim_seconds)
        mass_fluorite = mass_f * self.stoichiometry.fluoride_to_fluorite
        mass_reagent = mass_f * self.stoichiometry.fluoride_to_reagent

        acid_fraction = purity_mix / 100.0
        mass_acid = mass_fluorite * acid_fraction
        mass_metal = mass_fluorite - mass_acid

        self.state.total_fluoride_input += mass_f
        self.state.total_fluorite_output += mass_fluorite
        self.state.total_reagent_used += mass_reagent
        self.state.total_acid_grade += mass_acid
        self.state.total_metal_grade += mass_metal

        self._relax_ph()

        return ReactionStep(
            mass_fluoride_in=mass_f,
            mass_product_out=mass_fluorite,
            mass_reagent_used=mass_reagent,
            mass_acid_grade=mass_acid,
            mass_metal_grade=mass_metal,
        )

    def _relax_ph(self) -> None:
        """One low-pass step toward the target plus bounded uniform noise."""
        error = self.physics.target_ph - self.state.current_ph
        drift = (self.rng.random() - 0.5) * 2.0 * self.physics.ph_noise_amplitude
        self.state.current_ph += error * self.physics.ph_relaxation_rate + drift

    def efficiency(self) -> float:
        """
        Removal efficiency indicator [%] from pH stability.

        Falls by 15 points per pH unit away from target, floored at zero.
        """
        ph_error = abs(self.state.current_ph - self.physics.target_ph)
        return max(0.0, 99.8 - ph_error * 15.0)

    @property
    def current_ph(self) -> float:
        return self.state.current_ph

    def reset(self) -> None:
        self.state = ReactionState(current_ph=self.physics.initial_ph)


def validate_chemistry() -> None:
    """
    Comprehensive validation of the reaction accumulator.

    Tests:
    1. Golden mass values for 450 m³/h at 50 mg/L
    2. Stoichiometric invariants on the totals
    3. Grade split sums to product
    4. Noise-free pH converges without overshoot
    """
    acc = ReactionAccumulator(
        StoichiometryConstants(), PhysicsConstants(), ConstantRandomSource(0.5)
    )

    # Test 1: golden values over one simulated hour
    step = acc.step(450.0, 50.0, 3600.0, purity_mix=25.0)
    assert abs(step.mass_fluoride_in - 22500.0) < 1e-9, "Fluoride mass wrong"
    assert abs(step.mass_product_out - 22500.0 * 78 / 38) < 1e-9, "CaF2 mass wrong"
    assert abs(step.mass_reagent_used - 22500.0 * 111 / 38) < 1e-9, "CaCl2 mass wrong"

    # Test 2: invariants hold after several steps
    for _ in range(5):
        acc.step(300.0, 20.0, 600.0)
    s = acc.state
    assert abs(s.total_fluorite_output - s.total_fluoride_input * 78 / 38) < 1e-6
    assert abs(s.total_reagent_used - s.total_fluoride_input * 111 / 38) < 1e-6

    # Test 3: grade split
    assert abs(step.mass_acid_grade + step.mass_metal_grade - step.mass_product_out) < 1e-9

    # Test 4: monotone convergence toward target
    acc.reset()
    previous = acc.current_ph
    for _ in range(100):
        acc.step(450.0, 50.0, 1.0)
        assert previous <= acc.current_ph <= 8.2, "pH overshoot"
        previous = acc.current_ph
    assert abs(acc.current_ph - 8.2) < 1e-3, "pH did not converge"

    print("✓ All chemistry validations passed")


if __name__ == "__main__":
    """
    Demonstration of the mass balance.
    """
    acc = ReactionAccumulator(StoichiometryConstants(), PhysicsConstants())

    print("Fluoride Removal Mass Balance")
    print("=" * 60)
    print(f"{'Flow (m³/h)':<14} {'F (kg/h)':<12} {'CaF2 (kg/h)':<14} {'CaCl2 (kg/h)':<14}")
    print("-" * 60)

    for flow in (100.0, 250.0, 450.0, 800.0):
        step = acc.step(flow, 50.0, 3600.0)
        print(
            f"{flow:<14.0f} {step.mass_fluoride_in / 1000:<12.2f} "
            f"{step.mass_product_out / 1000:<14.2f} {step.mass_reagent_used / 1000:<14.2f}"
        )

    print()
    validate_chemistry()
