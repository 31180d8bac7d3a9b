import signal

import pytest

from rclf_simulator import __main__ as driver


@pytest.fixture(autouse=True)
def no_signal_handlers(monkeypatch):
    monkeypatch.setattr(signal, "signal", lambda *args: None)


@pytest.mark.parametrize(
    "validator, value, expected",
    [
        (driver.validate_flow_rate, 5000.0, 2000.0),
        (driver.validate_flow_rate, float("nan"), 450.0),
        (driver.validate_flow_rate, 0.0, 1.0),
        (driver.validate_concentration, -3.0, 0.0),
        (driver.validate_purity_mix, 140.0, 100.0),
        (driver.validate_speed, 0.0, 0.1),
        (driver.validate_speed, 4.0, 4.0),
        (driver.validate_frame_ms, 0.0, 1.0),
        (driver.validate_frame_ms, -20.0, 1.0),
        (driver.validate_frame_ms, 5000.0, 1000.0),
        (driver.validate_frame_ms, 33.0, 33.0),
    ],
)
def test_inputs_are_clamped(validator, value, expected) -> None:
    assert validator(value) == expected


def test_build_controls_from_args() -> None:
    args = driver.parse_args(["--flow-rate", "9000", "--purity-mix", "40", "--speed", "2"])

    controls = driver.build_controls(args)

    assert controls.flow_rate == 2000.0
    assert controls.purity_mix == 40.0
    assert controls.speed == 2.0
    assert controls.running


def test_batch_run_stops_after_simulated_days(caplog) -> None:
    caplog.set_level("INFO", logger="rclf_simulator")

    code = driver.main(["--no-realtime", "--days", "2", "--seed", "3", "--log-interval", "1"])

    assert code == 0
    assert "Simulation stopped" in caplog.text
    assert "ROI=" in caplog.text


def test_batch_run_stops_after_duration() -> None:
    assert driver.main(["--no-realtime", "--duration", "0.5", "--seed", "1"]) == 0


def test_history_plot_is_written(tmp_path) -> None:
    pytest.importorskip("matplotlib")
    path = tmp_path / "history.png"

    code = driver.main(
        ["--no-realtime", "--days", "3", "--speed", "10", "--plot", str(path)]
    )

    assert code == 0
    assert path.exists()
    assert path.stat().st_size > 0


@pytest.mark.parametrize("frame_ms", ["0", "-16"])
def test_batch_run_with_degenerate_frame_still_terminates(frame_ms, caplog) -> None:
    caplog.set_level("WARNING", logger="rclf_simulator")

    code = driver.main(["--no-realtime", "--frame-ms", frame_ms, "--days", "0.05"])

    assert code == 0
    assert "frame interval" in caplog.text
