import pytest

from backend.economics import FixedCost, build_cost_context, daily_amount, daily_fixed_total, resolve_reimbursement


class TestDailyAmount:
    @pytest.mark.parametrize(
        "frequency, amount, expected",
        [
            ("daily", 50.0, 50.0),
            ("weekly", 700.0, 100.0),
            ("monthly", 3650.0, 120.0),
            ("quarterly", 3650.0, 40.0),
            ("yearly", 36500.0, 100.0),
        ],
    )
    def test_frequency_normalization(self, frequency, amount, expected):
        cost = FixedCost(id="x", name="X", amount=amount, frequency=frequency)
        assert daily_amount(cost) == pytest.approx(expected)

    def test_unknown_frequency(self):
        with pytest.raises(ValueError):
            daily_amount(FixedCost(id="x", name="X", amount=1.0, frequency="hourly"))


class TestDailyFixedTotal:
    def test_inactive_costs_excluded(self):
        costs = [
            FixedCost(id="a", name="Rent", amount=700.0, frequency="weekly"),
            FixedCost(id="b", name="Phones", amount=10.0, frequency="daily"),
            FixedCost(id="c", name="Old", amount=1000.0, frequency="daily", active=False),
        ]
        assert daily_fixed_total(costs) == pytest.approx(110.0)

    def test_empty(self):
        assert daily_fixed_total([]) == 0


class TestReimbursement:
    def test_override_wins(self):
        assert resolve_reimbursement(150.0, 175.0) == 175.0

    def test_zero_override_still_wins(self):
        assert resolve_reimbursement(150.0, 0.0) == 0.0

    def test_falls_back_to_default(self):
        assert resolve_reimbursement(150.0, None) == 150.0
        assert resolve_reimbursement(None, None) == 0.0

    def test_build_cost_context(self):
        ctx = build_cost_context([FixedCost(id="a", name="A", amount=14.0, frequency="weekly")], 120.0, None)
        assert ctx.daily_fixed_cost == pytest.approx(2.0)
        assert ctx.avg_reimbursement == 120.0
