import pytest

from rclf_simulator.core import (
    ConstantRandomSource,
    ControlInputs,
    FinancialConstants,
    FinancialLedger,
    MarketPrices,
    ParticleConstants,
    PhysicsConstants,
    ReactionAccumulator,
    Simulation,
    StoichiometryConstants,
)


@pytest.fixture
def quiet_rng():
    """No pH noise, no spawning at 1x speed."""
    return ConstantRandomSource(0.5)


@pytest.fixture
def accumulator(quiet_rng):
    return ReactionAccumulator(StoichiometryConstants(), PhysicsConstants(), quiet_rng)


@pytest.fixture
def ledger():
    return FinancialLedger(MarketPrices(), FinancialConstants())


@pytest.fixture
def particle_constants():
    return ParticleConstants()


@pytest.fixture
def sim(quiet_rng):
    return Simulation(rng=quiet_rng)


@pytest.fixture
def controls():
    return ControlInputs(
        flow_rate=450.0,
        fluoride_concentration=50.0,
        purity_mix=0.0,
        speed=1.0,
        running=True,
    )
