"""
Main Simulation Driver
======================

Headless entry point for the RCLF process simulation.

Plays the part of the external scheduler and operator console: clamps the
operator inputs, drives ``Simulation.tick`` frame by frame (paced in real
time or as fast as possible), and logs the process figures periodically.

Examples:
    python -m rclf_simulator --speed 4 --duration 30
    python -m rclf_simulator --no-realtime --days 90 --purity-mix 40 --plot history.png

License: MIT
"""

import argparse
import logging
import signal
import sys
import time
from typing import List, Optional

from .core import ControlInputs, NumpyRandomSource, Simulation

logger = logging.getLogger(__name__)

# Global running flag for graceful shutdown
running = True


def signal_handler(sig, frame):
    """Handle Ctrl+C for clean shutdown."""
    global running
    logger.info("Shutdown signal received. Stopping simulation...")
    running = False


def _clamp(name: str, value: float, min_value: float, max_value: float, default: float) -> float:
    if not isinstance(value, (int, float)) or value != value:  # NaN check
        logger.warning(f"Invalid {name} {value!r}, using {default}")
        return default
    clamped = max(min_value, min(float(value), max_value))
    if clamped != value:
        logger.warning(f"{name} {value} clamped to {clamped}")
    return clamped


# Input validation at the boundary; the engine trusts what it is given
def validate_flow_rate(value: float, max_value: float = 2000.0) -> float:
    """Validate and clamp flow rate [m³/h] within plant bounds."""
    return _clamp("flow rate", value, 1.0, max_value, 450.0)


def validate_concentration(value: float, max_value: float = 500.0) -> float:
    """Validate and clamp fluoride concentration [mg/L]."""
    return _clamp("concentration", value, 0.0, max_value, 50.0)


def validate_purity_mix(value: float) -> float:
    """Validate acid-grade share within [0, 100] %."""
    return _clamp("purity mix", value, 0.0, 100.0, 0.0)


def validate_speed(value: float, max_value: float = 50.0) -> float:
    """Validate speed multiplier."""
    return _clamp("speed", value, 0.1, max_value, 1.0)


def validate_frame_ms(value: float, max_value: float = 1000.0) -> float:
    """Validate frame interval [ms]; a non-positive frame never advances time."""
    return _clamp("frame interval", value, 1.0, max_value, 1000.0 / 60.0)


def build_controls(args: argparse.Namespace) -> ControlInputs:
    controls = ControlInputs(
        flow_rate=validate_flow_rate(args.flow_rate),
        fluoride_concentration=validate_concentration(args.concentration),
        purity_mix=validate_purity_mix(args.purity_mix),
        speed=validate_speed(args.speed),
        running=True,
    )
    controls.validate()
    return controls


def log_status(sim: Simulation) -> None:
    summary = sim.summary()
    window_days = sim.config.financial.window_days
    logger.info(
        f"t={summary['elapsed']:>7} | "
        f"pH={summary['pH']:.2f} | "
        f"CaF2={summary['fluorite_out_kg']:.1f}kg | "
        f"CaCl2={summary['dosing_g_s']:.2f}g/s | "
        f"Rev{window_days}d=R${summary[f'revenue_{window_days}d']:,.2f} | "
        f"Profit{window_days}d=R${summary[f'profit_{window_days}d']:,.2f} | "
        f"ROI={summary['roi_pct']:.1f}% | "
        f"Particles={summary['particles']}"
    )


def save_history_plot(sim: Simulation, path: str) -> bool:
    """Plot the snapshot history to ``path`` (needs the ``plot`` extra)."""
    try:
        import matplotlib

        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError:
        logger.error("matplotlib not installed; install the 'plot' extra")
        return False

    history = sim.history
    if not history:
        logger.warning("No history to plot")
        return False

    days = [h.day for h in history]
    fig, ax = plt.subplots(figsize=(12, 6))
    ax.plot(days, [h.revenue for h in history], label="Revenue", linewidth=2)
    ax.plot(days, [h.cost for h in history], label="Cost", linewidth=2)
    ax.plot(days, [h.savings for h in history], label="Avoided costs", linestyle=":")
    ax.plot(days, [h.profit for h in history], label="Profit", linestyle="--")
    ax.set_xlabel("Simulated day")
    ax.set_ylabel("BRL (cumulative)")
    ax.set_title("RCLF Financial History")
    ax.legend()
    ax.grid(True, alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)

    logger.info(f"History plot saved to {path}")
    return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="RCLF Fluoride Crystallization Simulation")
    parser.add_argument("--flow-rate", type=float, default=450.0, help="Feed flow [m³/h]")
    parser.add_argument(
        "--concentration", type=float, default=50.0, help="Fluoride concentration [mg/L]"
    )
    parser.add_argument(
        "--purity-mix", type=float, default=0.0, help="Acid-grade share of product [%%]"
    )
    parser.add_argument("--speed", type=float, default=1.0, help="Speed multiplier")
    parser.add_argument(
        "--frame-ms", type=float, default=1000.0 / 60.0, help="Frame interval [ms]"
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=float("inf"),
        help="Total real run time [seconds]",
    )
    parser.add_argument(
        "--days", type=float, default=None, help="Stop after this many simulated days"
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--no-realtime",
        action="store_true",
        help="Run frames back to back with a fixed delta (batch mode)",
    )
    parser.add_argument(
        "--log-interval", type=float, default=5.0, help="Status log interval [real seconds]"
    )
    parser.add_argument("--plot", type=str, default=None, help="Save history chart to file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    global running
    running = True

    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("=" * 70)
    logger.info("RCLF FLUORIDE CRYSTALLIZATION SIMULATION")
    logger.info("=" * 70)

    # ========================================================================
    # PHASE 1: Initialize Engine
    # ========================================================================
    try:
        controls = build_controls(args)
        sim = Simulation(rng=NumpyRandomSource(seed=args.seed))
    except ValueError as e:
        logger.error(f"Initialization failed: {e}")
        return 1

    logger.info(
        f"Feed {controls.flow_rate:.0f} m³/h at {controls.fluoride_concentration:.1f} mg/L, "
        f"{controls.purity_mix:.0f}% acid grade, speed {controls.speed:.1f}x"
    )

    # ========================================================================
    # PHASE 2: Main Loop
    # ========================================================================
    logger.info("Starting simulation loop (Ctrl+C to stop)")

    frame_ms = validate_frame_ms(args.frame_ms)
    frame_s = frame_ms / 1000.0
    real_elapsed = 0.0
    next_log = 0.0
    last_time = time.monotonic()

    try:
        while running and real_elapsed < args.duration:
            if args.days is not None and sim.sim_days >= args.days:
                break

            if args.no_realtime:
                delta_ms = frame_ms
            else:
                now = time.monotonic()
                delta_ms = (now - last_time) * 1000.0
                last_time = now

            sim.tick(delta_ms, controls)
            real_elapsed += delta_ms / 1000.0

            if real_elapsed >= next_log:
                log_status(sim)
                next_log += args.log_interval

            # --- Real-time pacing ---
            if not args.no_realtime:
                elapsed = time.monotonic() - last_time
                sleep_time = max(0.0, frame_s - elapsed)
                if sleep_time > 0:
                    time.sleep(sleep_time)

    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")

    finally:
        logger.info("Simulation stopped")
        log_status(sim)

    if args.plot:
        save_history_plot(sim, args.plot)

    return 0


if __name__ == "__main__":
    sys.exit(main())
