"""Run the engine self-checks: ``python -m rclf_simulator.core``."""

from . import run_all_validations

run_all_validations()
