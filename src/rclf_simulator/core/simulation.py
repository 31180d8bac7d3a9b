"""
Integrated RCLF Simulation Engine
=================================

This module ties the process components together behind a single per-frame
entry point:

- Clock (real time → simulated time)
- Chemistry (mass balance, pH)
- Ledger (revenue, cost, savings, rolling window)
- Particles (fluidized-bed visual model)

TICK ORDER
==========

    clock.advance → chemistry.step → ledger.accrue → particles.update

The financial figures read for reporting within a tick always include that
tick's accrual. Particles share only the tick scalars with the other
components. When ``running`` is false nothing moves: totals, history and
the particle population stay frozen.

Execution is single-threaded and synchronous; the external driver owns the
scheduling (see ``rclf_simulator.__main__``).

License: MIT
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .config import ControlInputs, SimulationConfig
from .clock import SimulationClock, ElapsedTime
from .chemistry import ReactionAccumulator
from .ledger import FinancialLedger, DailySnapshot, WindowMetrics
from .particles import ParticleSystem, ParticleSnapshot
from .randomness import RandomSource, NumpyRandomSource, ConstantRandomSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickResult:
    """Incremental results of one tick [g, s, g/s]."""

    mass_fluoride_in: float = 0.0
    mass_product_out: float = 0.0
    mass_reagent_used: float = 0.0
    sim_seconds: float = 0.0
    reagent_dosing_rate: float = 0.0  # CaCl₂ per simulated second


class Simulation:
    """
    Complete process simulation with economics and bed visualization.

    Owns every piece of mutable state; multiple instances are independent.
    """

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        rng: Optional[RandomSource] = None,
        bed_center: Tuple[float, float] = (0.0, 0.0),
        validate_inputs: bool = False,
    ):
        """
        Initialize the simulation.

        Args:
            config: Constant bundle (defaults to the reference process)
            rng: Random source shared by pH drift and particle spawning
            bed_center: Screen position of the bed center
            validate_inputs: Call ``ControlInputs.validate`` on every tick
        """
        config = config or SimulationConfig()
        config.validate()
        self.config = config
        self.rng = rng or NumpyRandomSource()
        self.bed_center = bed_center
        self.validate_inputs = validate_inputs

        self.clock = SimulationClock(config.time)
        self.chemistry = ReactionAccumulator(
            config.stoichiometry, config.physics, self.rng
        )
        self.ledger = FinancialLedger(config.market, config.financial)
        self.particle_system = ParticleSystem(config.particles, self.rng)

        self.last_result = TickResult()
        self.tick_count = 0

        logger.info(f"Simulation initialized with {self.rng!r}")

    def configure(self, config: SimulationConfig) -> None:
        """
        Swap the constant bundle; accumulated state is kept.

        History capacity changes take effect on the next ``reset``.
        """
        config.validate()
        self.config = config
        self.clock.constants = config.time
        self.chemistry.stoichiometry = config.stoichiometry
        self.chemistry.physics = config.physics
        self.ledger.market = config.market
        self.ledger.financial = config.financial
        self.particle_system.constants = config.particles
        logger.info("Configuration updated")

    def reset(self) -> None:
        """Return every component to its initial state."""
        self.clock.reset()
        self.chemistry.reset()
        self.ledger = FinancialLedger(self.config.market, self.config.financial)
        self.particle_system.reset()
        self.last_result = TickResult()
        self.tick_count = 0
        logger.info("Simulation reset")

    def set_bed_center(self, x: float, y: float) -> None:
        self.bed_center = (x, y)

    def tick(self, real_delta_ms: float, controls: ControlInputs) -> TickResult:
        """
        Advance the whole process by one frame.

        Args:
            real_delta_ms: Real time since the previous tick [ms]
            controls: Operator inputs for this tick

        Returns:
            Incremental masses for this tick (all zero while stopped)
        """
        if not controls.running:
            return TickResult()

        if self.validate_inputs:
            controls.validate()

        step = self.clock.advance(real_delta_ms, controls.speed)

        reaction = self.chemistry.step(
            controls.flow_rate,
            controls.fluoride_concentration,
            step.sim_seconds,
            controls.purity_mix,
        )

        snapshot = self.ledger.accrue(
            reaction.mass_product_out,
            reaction.mass_reagent_used,
            reaction.mass_fluoride_in,
            controls.purity_mix,
            self.clock.sim_days,
        )
        if snapshot is not None:
            logger.debug(f"Day {snapshot.day} closed at tick {self.tick_count}")

        self.particle_system.update(
            real_delta_ms, controls.speed, controls.flow_rate, self.bed_center
        )

        dosing_rate = (
            reaction.mass_reagent_used / step.sim_seconds
            if step.sim_seconds > 0
            else 0.0
        )
        self.last_result = TickResult(
            mass_fluoride_in=reaction.mass_fluoride_in,
            mass_product_out=reaction.mass_product_out,
            mass_reagent_used=reaction.mass_reagent_used,
            sim_seconds=step.sim_seconds,
            reagent_dosing_rate=dosing_rate,
        )
        self.tick_count += 1
        return self.last_result

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def current_ph(self) -> float:
        return self.chemistry.current_ph

    @property
    def total_fluoride_input(self) -> float:
        return self.chemistry.state.total_fluoride_input

    @property
    def total_fluorite_output(self) -> float:
        return self.chemistry.state.total_fluorite_output

    @property
    def total_reagent_used(self) -> float:
        return self.chemistry.state.total_reagent_used

    @property
    def total_revenue(self) -> float:
        return self.ledger.state.total_revenue

    @property
    def total_variable_cost(self) -> float:
        return self.ledger.state.total_variable_cost

    @property
    def total_fixed_cost(self) -> float:
        return self.ledger.state.total_fixed_cost

    @property
    def total_savings(self) -> float:
        return self.ledger.state.total_savings

    @property
    def net_profit(self) -> float:
        return self.ledger.net_profit

    @property
    def sim_days(self) -> float:
        return self.clock.sim_days

    @property
    def history(self) -> List[DailySnapshot]:
        return self.ledger.snapshots()

    def window_metrics(self, window_days: Optional[int] = None) -> WindowMetrics:
        return self.ledger.window_metrics(window_days)

    def roi(self, window_days: Optional[int] = None) -> float:
        return self.ledger.roi(window_days)

    def elapsed(self) -> ElapsedTime:
        return self.clock.elapsed()

    def elapsed_label(self) -> str:
        return self.clock.elapsed().format()

    def efficiency(self) -> float:
        return self.chemistry.efficiency()

    def particles(self) -> List[ParticleSnapshot]:
        return self.particle_system.snapshots()

    def summary(self) -> Dict[str, Any]:
        """Reporting figures in display units (kg, BRL, %)."""
        window = self.window_metrics()
        return {
            "elapsed": self.elapsed_label(),
            "sim_days": self.sim_days,
            "pH": self.current_ph,
            "efficiency_pct": self.efficiency(),
            "fluoride_in_kg": self.total_fluoride_input / 1000.0,
            "fluorite_out_kg": self.total_fluorite_output / 1000.0,
            "reagent_used_kg": self.total_reagent_used / 1000.0,
            "dosing_g_s": self.last_result.reagent_dosing_rate,
            "revenue": self.total_revenue,
            "savings": self.total_savings,
            "net_profit": self.net_profit,
            f"revenue_{window.window_days}d": window.revenue,
            f"profit_{window.window_days}d": window.profit,
            "roi_pct": self.roi(),
            "particles": len(self.particle_system),
        }

    def print_diagnostics(self):
        """Print process and economic diagnostics."""
        summary = self.summary()
        window_days = self.config.financial.window_days

        print("\n" + "=" * 70)
        print("RCLF PROCESS DIAGNOSTICS")
        print("=" * 70)

        print(f"\nElapsed: {summary['elapsed']} ({summary['sim_days']:.2f} days)")
        print(f"pH: {summary['pH']:.2f}  Efficiency: {summary['efficiency_pct']:.1f}%")

        print("\nMass Balance:")
        print(f"  Fluoride removed: {summary['fluoride_in_kg']:.2f} kg")
        print(f"  Fluorite produced: {summary['fluorite_out_kg']:.2f} kg")
        print(f"  CaCl2 consumed: {summary['reagent_used_kg']:.2f} kg")

        print("\nEconomics (BRL):")
        print(f"  Revenue: {summary['revenue']:,.2f}")
        print(f"  Avoided costs: {summary['savings']:,.2f}")
        print(f"  Net profit: {summary['net_profit']:,.2f}")
        print(f"  Revenue {window_days}d: {summary[f'revenue_{window_days}d']:,.2f}")
        print(f"  Profit {window_days}d: {summary[f'profit_{window_days}d']:,.2f}")
        print(f"  ROI (annualized): {summary['roi_pct']:.2f}%")

        counts = self.particle_system.counts()
        print("\nFluidized Bed:")
        for name, count in counts.items():
            print(f"  {name:<18} {count}")

        print("=" * 70 + "\n")


def validate_simulation():
    """Validation of the integrated engine."""
    sim = Simulation(rng=ConstantRandomSource(0.5))
    controls = ControlInputs(flow_rate=450.0, fluoride_concentration=50.0)

    # Test 1: stopped ticks change nothing
    result = sim.tick(1000.0, controls)
    assert result == TickResult(), "Stopped tick produced mass"
    assert sim.sim_days == 0.0, "Clock moved while stopped"

    # Test 2: one real second covers four hours of production
    controls.running = True
    result = sim.tick(1000.0, controls)
    expected_f = 450.0 * 50.0 / 3600.0 * 4 * 3600.0
    assert abs(result.mass_fluoride_in - expected_f) < 1e-6, "Fluoride mass wrong"
    assert abs(sim.total_fixed_cost - (4.0 / 24.0) * 1500.0) < 1e-9

    # Test 3: reset restores initial state
    for _ in range(50):
        sim.tick(1000.0, controls)
    sim.reset()
    assert sim.total_fluoride_input == 0.0 and sim.total_revenue == 0.0
    assert sim.current_ph == 7.0 and not sim.history and not sim.particles()

    print("✓ All simulation validations passed")


if __name__ == "__main__":
    """
    Demonstration: 90 simulated days at 450 m³/h, 50 mg/L, 50% acid grade.
    """
    import matplotlib.pyplot as plt

    sim = Simulation(rng=NumpyRandomSource(seed=7))
    controls = ControlInputs(
        flow_rate=450.0, fluoride_concentration=50.0, purity_mix=50.0, running=True
    )

    frame_ms = 1000.0 / 60.0
    n_frames = int(90 * 6 * 60)  # six real seconds per simulated day

    ph_trace = []
    for frame in range(n_frames):
        sim.tick(frame_ms, controls)
        if frame % 60 == 0:
            ph_trace.append(sim.current_ph)

    sim.print_diagnostics()

    history = sim.history
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8))

    ax1.plot([h.day for h in history], [h.revenue for h in history], label="Revenue")
    ax1.plot([h.day for h in history], [h.cost for h in history], label="Cost")
    ax1.plot(
        [h.day for h in history],
        [h.profit for h in history],
        label="Profit incl. avoided costs",
        linestyle="--",
    )
    ax1.set_ylabel("BRL (cumulative)")
    ax1.set_title("Financial History (last 40 days)")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.plot(ph_trace, linewidth=2)
    ax2.axhline(8.2, color="red", linestyle=":", label="Target", alpha=0.7)
    ax2.set_xlabel("Real seconds")
    ax2.set_ylabel("pH")
    ax2.set_title("pH Relaxation")
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig("rclf_simulation_demo.png", dpi=150)
    print("\nPlot saved to rclf_simulation_demo.png")

    validate_simulation()
