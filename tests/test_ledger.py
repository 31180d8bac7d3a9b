from dataclasses import replace

import pytest

from rclf_simulator.core import (
    DailySnapshot,
    FinancialConstants,
    FinancialLedger,
    MarketPrices,
    WindowMetrics,
)

TON = 1_000_000.0  # grams


def _one_ton_per_day(ledger: FinancialLedger, n_days: int) -> None:
    """Book one ton of metal-grade product at every day boundary."""
    for day in range(n_days):
        ledger.accrue(TON, 0.0, 0.0, 0.0, float(day))


class TestPricing:
    """Revenue, cost and savings per accrual."""

    @pytest.mark.parametrize(
        "purity_mix, price",
        [(0.0, 3000.0), (100.0, 5500.0), (50.0, 4250.0), (20.0, 3500.0)],
    )
    def test_blended_price(self, ledger, purity_mix, price) -> None:
        assert ledger.blended_price(purity_mix) == pytest.approx(price)

    def test_accrue_converts_grams_to_tons(self, ledger) -> None:
        ledger.accrue(2 * TON, 0.5 * TON, 0.1 * TON, 100.0, 0.0)

        assert ledger.state.total_revenue == pytest.approx(2 * 5500.0)
        assert ledger.state.total_variable_cost == pytest.approx(0.5 * 1100.0)
        assert ledger.state.total_savings == pytest.approx(0.1 * 7237.5)

    def test_fixed_cost_is_derived_from_elapsed_days(self, ledger) -> None:
        for sim_days in (0.1, 0.25, 1.7, 3.0, 10.125):
            ledger.accrue(TON, TON, TON, 0.0, sim_days)
            assert ledger.state.total_fixed_cost == sim_days * 1500.0

    def test_net_profit_includes_savings(self, ledger) -> None:
        ledger.accrue(TON, TON, TON, 0.0, 2.0)

        expected = 3000.0 - (1100.0 + 2 * 1500.0) + 7237.5
        assert ledger.net_profit == pytest.approx(expected)
        assert ledger.total_cost == pytest.approx(1100.0 + 3000.0)


class TestHistory:
    """Day-keyed snapshot policy."""

    def test_first_accrual_snapshots_day_zero(self, ledger) -> None:
        snapshot = ledger.accrue(TON, 0.0, 0.0, 0.0, 0.5)

        assert snapshot == DailySnapshot(day=0, revenue=3000.0, savings=0.0, cost=750.0)
        assert ledger.snapshots() == [snapshot]

    def test_one_snapshot_per_day(self, ledger) -> None:
        for sim_days in (0.0, 0.2, 0.9, 1.0, 1.5, 1.99, 2.01):
            ledger.accrue(TON, 0.0, 0.0, 0.0, sim_days)

        assert [h.day for h in ledger.history] == [0, 1, 2]

    def test_snapshot_uses_current_cumulative_totals(self, ledger) -> None:
        ledger.accrue(TON, 0.0, 0.0, 0.0, 0.5)
        ledger.accrue(TON, TON, TON, 0.0, 1.25)

        latest = ledger.history[-1]
        assert latest.day == 1
        assert latest.revenue == pytest.approx(6000.0)
        assert latest.savings == pytest.approx(7237.5)
        assert latest.cost == pytest.approx(1100.0 + 1.25 * 1500.0)

    def test_skipped_days_produce_a_single_entry(self, ledger) -> None:
        ledger.accrue(TON, 0.0, 0.0, 0.0, 0.0)
        ledger.accrue(TON, 0.0, 0.0, 0.0, 5.5)

        assert [h.day for h in ledger.history] == [0, 5]

    def test_history_is_capped_and_strictly_increasing(self, ledger) -> None:
        _one_ton_per_day(ledger, 100)

        days = [h.day for h in ledger.history]
        assert len(days) == 40
        assert days == list(range(60, 100))
        assert all(a < b for a, b in zip(days, days[1:]))

    def test_custom_capacity(self) -> None:
        financial = replace(FinancialConstants(), history_capacity=5)
        ledger = FinancialLedger(MarketPrices(), financial)
        _one_ton_per_day(ledger, 12)

        assert [h.day for h in ledger.history] == [7, 8, 9, 10, 11]

    def test_reset_clears_everything(self, ledger) -> None:
        _one_ton_per_day(ledger, 10)
        ledger.reset()

        assert not ledger.history
        assert ledger.state.total_revenue == 0.0
        assert ledger.state.total_fixed_cost == 0.0
        assert ledger.window_metrics() == WindowMetrics(window_days=30)
        # Day zero is snapshotted again after a reset
        ledger.accrue(TON, 0.0, 0.0, 0.0, 0.0)
        assert [h.day for h in ledger.history] == [0]


class TestRollingWindow:
    """Window reconstruction from bounded snapshots."""

    def test_forty_evenly_spaced_days(self, ledger) -> None:
        # Days 0..39: revenue 3000 x (d + 1), cost 1500 x d
        _one_ton_per_day(ledger, 40)

        metrics = ledger.window_metrics(30)

        # Reference is day 9; latest is day 39
        assert metrics.revenue == pytest.approx(30 * 3000.0)
        assert metrics.profit == pytest.approx(30 * 3000.0 - 30 * 1500.0)
        assert metrics.window_days == 30

    def test_short_span_is_rescaled_to_window(self, ledger) -> None:
        _one_ton_per_day(ledger, 10)  # days 0..9, span 9

        metrics = ledger.window_metrics(30)

        assert metrics.revenue == pytest.approx(9 * 3000.0 * 30 / 9)
        assert metrics.profit == pytest.approx((9 * 3000.0 - 9 * 1500.0) * 30 / 9)

    def test_window_includes_savings_in_profit(self, ledger) -> None:
        for day in range(40):
            ledger.accrue(0.0, 0.0, TON, 0.0, float(day))

        metrics = ledger.window_metrics(30)

        assert metrics.revenue == pytest.approx(0.0)
        assert metrics.profit == pytest.approx(30 * 7237.5 - 30 * 1500.0)

    def test_gap_in_history_uses_first_snapshot_inside_window(self, ledger) -> None:
        for day in (0, 1, 2, 3, 20, 25, 40):
            ledger.accrue(TON, 0.0, 0.0, 0.0, float(day))

        metrics = ledger.window_metrics(30)

        # Target day 10; first snapshot at or after it is day 20, span 20
        assert metrics.revenue == pytest.approx(2 * 3000.0 * 30 / 20)

    def test_zero_span_keeps_previous_values(self, ledger) -> None:
        _one_ton_per_day(ledger, 10)
        previous = ledger.window_metrics(30)

        assert ledger.window_metrics(0) == previous

    @pytest.mark.parametrize("window_days", [0, -5])
    def test_non_positive_window_keeps_previous_values(self, ledger, window_days) -> None:
        ledger.accrue(TON, 0.0, 0.0, 0.0, 0.5)
        previous = ledger.window_metrics(30)

        assert ledger.window_metrics(window_days) == previous
        assert ledger.roi(window_days) == ledger.roi(30)
        assert ledger.payback_days(window_days) == ledger.payback_days(30)

    def test_non_positive_window_before_any_accrual(self, ledger) -> None:
        assert ledger.window_metrics(0) == WindowMetrics(0.0, 0.0, 30)
        assert ledger.roi(0) == 0.0
        assert ledger.payback_days(0) is None

    def test_short_history_extrapolates_average_rate(self, ledger) -> None:
        ledger.accrue(TON, 0.0, 0.0, 0.0, 0.5)
        ledger.accrue(TON, 0.0, 0.0, 0.0, 1.5)

        metrics = ledger.window_metrics(30)

        assert len(ledger.history) == 2
        assert metrics.revenue == pytest.approx(6000.0 / 1.5 * 30)
        assert metrics.profit == pytest.approx((6000.0 - 1.5 * 1500.0) / 1.5 * 30)

    def test_no_elapsed_time_yields_zero(self, ledger) -> None:
        assert ledger.window_metrics() == WindowMetrics(0.0, 0.0, 30)

        ledger.accrue(TON, 0.0, 0.0, 0.0, 0.0)
        assert ledger.window_metrics() == WindowMetrics(0.0, 0.0, 30)


class TestReturnOnInvestment:
    def test_roi_annualizes_window_profit(self, ledger) -> None:
        _one_ton_per_day(ledger, 40)

        # 45 000 per 30 days
        expected = 45000.0 * (365.0 / 30.0) / 1_000_000.0 * 100.0
        assert ledger.roi(30) == pytest.approx(expected)

    def test_payback_days(self, ledger) -> None:
        _one_ton_per_day(ledger, 40)

        assert ledger.payback_days(30) == pytest.approx(1_000_000.0 / 1500.0)

    def test_no_payback_when_losing_money(self, ledger) -> None:
        for day in range(40):
            ledger.accrue(0.0, TON, 0.0, 0.0, float(day))

        assert ledger.window_metrics().profit < 0
        assert ledger.payback_days() is None
        assert ledger.roi() < 0
