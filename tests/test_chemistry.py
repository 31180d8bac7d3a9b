from dataclasses import replace

import pytest

from rclf_simulator.core import (
    NumpyRandomSource,
    PhysicsConstants,
    ReactionAccumulator,
    StoichiometryConstants,
)


def test_golden_masses_for_reference_feed(accumulator) -> None:
    # 450 m³/h at 50 mg/L over one real second at 1x (four simulated hours)
    step = accumulator.step(450.0, 50.0, 4 * 3600.0)

    assert step.mass_fluoride_in == pytest.approx(90000.0)
    assert step.mass_product_out == pytest.approx(90000.0 * 78.0 / 38.0)
    assert step.mass_reagent_used == pytest.approx(90000.0 * 111.0 / 38.0)


def test_totals_follow_stoichiometric_ratios(accumulator) -> None:
    for flow, conc, dt in [(450.0, 50.0, 60.0), (120.0, 8.0, 3600.0), (800.0, 0.0, 10.0)]:
        accumulator.step(flow, conc, dt)

    state = accumulator.state
    assert state.total_fluorite_output == pytest.approx(state.total_fluoride_input * 78 / 38)
    assert state.total_reagent_used == pytest.approx(state.total_fluoride_input * 111 / 38)


def test_step_returns_increment_not_total(accumulator) -> None:
    first = accumulator.step(450.0, 50.0, 3600.0)
    second = accumulator.step(450.0, 50.0, 3600.0)

    assert second.mass_fluoride_in == pytest.approx(first.mass_fluoride_in)
    assert accumulator.state.total_fluoride_input == pytest.approx(2 * first.mass_fluoride_in)


def test_zero_interval_adds_no_mass(accumulator) -> None:
    step = accumulator.step(450.0, 50.0, 0.0)

    assert step.mass_fluoride_in == 0.0
    assert accumulator.state.total_fluorite_output == 0.0


def test_purity_mix_splits_product_by_grade(accumulator) -> None:
    step = accumulator.step(450.0, 50.0, 3600.0, purity_mix=30.0)

    assert step.mass_acid_grade == pytest.approx(0.3 * step.mass_product_out)
    assert step.mass_metal_grade == pytest.approx(0.7 * step.mass_product_out)
    # Purity routing never changes the chemistry
    assert step.mass_product_out == pytest.approx(22500.0 * 78 / 38)


def test_noise_free_ph_converges_monotonically(accumulator) -> None:
    target = accumulator.physics.target_ph
    rate = accumulator.physics.ph_relaxation_rate
    previous = accumulator.current_ph

    for _ in range(200):
        before_error = target - accumulator.current_ph
        accumulator.step(450.0, 50.0, 1.0)
        assert accumulator.current_ph >= previous
        assert accumulator.current_ph <= target
        assert target - accumulator.current_ph == pytest.approx(before_error * (1 - rate), abs=1e-12)
        previous = accumulator.current_ph

    assert accumulator.current_ph == pytest.approx(target, abs=1e-6)


def test_ph_approaches_target_from_above(quiet_rng) -> None:
    physics = replace(PhysicsConstants(), initial_ph=9.0)
    acc = ReactionAccumulator(StoichiometryConstants(), physics, quiet_rng)

    for _ in range(50):
        before = acc.current_ph
        acc.step(450.0, 50.0, 1.0)
        assert physics.target_ph <= acc.current_ph < before


def test_ph_perturbation_is_bounded() -> None:
    physics = PhysicsConstants()
    acc = ReactionAccumulator(StoichiometryConstants(), physics, NumpyRandomSource(seed=11))

    for _ in range(500):
        before = acc.current_ph
        acc.step(450.0, 50.0, 1.0)
        relaxed = before + (physics.target_ph - before) * physics.ph_relaxation_rate
        assert abs(acc.current_ph - relaxed) <= physics.ph_noise_amplitude + 1e-12


def test_seeded_sources_reproduce_ph() -> None:
    runs = []
    for _ in range(2):
        acc = ReactionAccumulator(
            StoichiometryConstants(), PhysicsConstants(), NumpyRandomSource(seed=5)
        )
        for _ in range(20):
            acc.step(450.0, 50.0, 1.0)
        runs.append(acc.current_ph)

    assert runs[0] == runs[1]


def test_efficiency_drops_with_ph_error(accumulator) -> None:
    # Initial pH 7.0 is 1.2 below target
    assert accumulator.efficiency() == pytest.approx(99.8 - 1.2 * 15.0)

    accumulator.state.current_ph = 2.0  # error 6.2
    assert accumulator.efficiency() == pytest.approx(99.8 - 6.2 * 15.0)

    accumulator.state.current_ph = 1.0  # error 7.2 is past the floor
    assert accumulator.efficiency() == 0.0


def test_reset_restores_initial_state(accumulator) -> None:
    accumulator.step(450.0, 50.0, 3600.0)
    accumulator.reset()

    assert accumulator.current_ph == 7.0
    assert accumulator.state.total_fluoride_input == 0.0
    assert accumulator.state.total_fluorite_output == 0.0
    assert accumulator.state.total_reagent_used == 0.0
