"""
Tests for the shift economics calculator.

Run with:
    pytest tests/test_engine.py -v
"""

import pytest

from backend.economics import (
    MATERIALS_COST,
    Assignment,
    CostContext,
    StaffMember,
    Target,
    calculate_day,
    compute_daily_result,
    compute_labor_cost,
)


@pytest.fixture
def lookup():
    return {
        "a": StaffMember(id="a", name="A", role="Physician", hourly_rate=120.0),
        "b": StaffMember(id="b", name="B", role="RN", hourly_rate=45.5),
        "c": StaffMember(id="c", name="C", role="MA", hourly_rate=0.0),
    }


# ============================================================================
# Labor Cost
# ============================================================================

class TestLaborCost:
    """compute_labor_cost sums rate x hours over known staff."""

    def test_empty_assignments_cost_nothing(self, lookup):
        assert compute_labor_cost([], lookup) == 0
        assert compute_labor_cost([], {}) == 0

    def test_sums_rate_times_hours(self, lookup):
        assignments = [Assignment("a", 8), Assignment("b", 10), Assignment("c", 4)]
        assert compute_labor_cost(assignments, lookup) == pytest.approx(120 * 8 + 45.5 * 10)

    def test_unknown_staff_is_skipped(self, lookup):
        known = [Assignment("a", 8), Assignment("b", 2.5)]
        with_unknown = known + [Assignment("ghost", 12), Assignment("gone", 1)]
        assert compute_labor_cost(with_unknown, lookup) == compute_labor_cost(known, lookup)

    def test_zero_or_unset_hours_contribute_nothing(self, lookup):
        assignments = [Assignment("a", 0), Assignment("b", None)]
        assert compute_labor_cost(assignments, lookup) == 0

    def test_fractional_hours(self, lookup):
        assert compute_labor_cost([Assignment("b", 7.25)], lookup) == pytest.approx(45.5 * 7.25)


# ============================================================================
# Daily Result
# ============================================================================

class TestDailyResult:
    """compute_daily_result derives cost, revenue, profit and patients needed."""

    def test_margin_target(self):
        result = compute_daily_result(500, 300, 150, 10, Target.margin(20))
        assert result.total_cost == 800
        assert result.revenue_so_far == 1500
        assert result.profit_now == 700
        assert result.patients_needed == pytest.approx(800 / (150 * 0.8))
        assert result.patients_needed == pytest.approx(6.6667, rel=1e-4)

    def test_amount_target(self):
        result = compute_daily_result(500, 300, 150, 10, Target.amount(1000))
        assert result.patients_needed == pytest.approx(12.0)

    def test_materials_cost_is_zero_placeholder(self):
        result = compute_daily_result(100, 50, 10, 0, Target.margin(0))
        assert MATERIALS_COST == 0
        assert result.materials_cost == 0
        assert result.total_cost == 150

    @pytest.mark.parametrize("margin", [100, 100.0, 150, 1000])
    def test_margin_at_or_above_100_is_not_computable(self, margin):
        result = compute_daily_result(500, 300, 150, 10, Target.margin(margin))
        assert result.patients_needed is None

    @pytest.mark.parametrize("target", [Target.margin(20), Target.amount(1000), Target.amount(-5000)])
    def test_zero_reimbursement_is_not_computable(self, target):
        result = compute_daily_result(500, 300, 0, 10, target)
        assert result.patients_needed is None
        assert result.revenue_so_far == 0
        assert result.profit_now == -800

    def test_negative_reimbursement_is_not_computable(self):
        result = compute_daily_result(500, 300, -10, 10, Target.margin(20))
        assert result.patients_needed is None

    def test_negative_amount_target_yields_negative_count(self):
        # Target already met at zero patients; reported raw, not clamped.
        result = compute_daily_result(500, 300, 150, 0, Target.amount(-1100))
        assert result.patients_needed == pytest.approx(-2.0)

    def test_negative_margin_target(self):
        result = compute_daily_result(500, 300, 100, 0, Target.margin(-100))
        assert result.patients_needed == pytest.approx(800 / (100 * 2))

    def test_zero_costs_margin_target(self):
        result = compute_daily_result(0, 0, 150, 0, Target.margin(20))
        assert result.patients_needed == 0

    def test_deterministic(self):
        args = (812.5, 301.25, 147.0, 17, Target.margin(35))
        first = compute_daily_result(*args)
        for _ in range(5):
            assert compute_daily_result(*args) == first


# ============================================================================
# Target
# ============================================================================

class TestTarget:
    def test_constructors(self):
        assert Target.margin(20) == Target(mode="margin", value=20)
        assert Target.amount(-50) == Target(mode="amount", value=-50)

    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError):
            Target(mode="percent", value=10)


# ============================================================================
# Composition
# ============================================================================

class TestCalculateDay:
    def test_combines_labor_and_cost_context(self, lookup):
        assignments = [Assignment("a", 4), Assignment("b", 4), Assignment("ghost", 8)]
        costs = CostContext(daily_fixed_cost=100.0, avg_reimbursement=200.0)
        result = calculate_day(assignments, lookup, costs, 3, Target.amount(0))
        labor = 120 * 4 + 45.5 * 4
        assert result.labor_cost == pytest.approx(labor)
        assert result.total_cost == pytest.approx(labor + 100)
        assert result.revenue_so_far == 600
        assert result.patients_needed == pytest.approx((labor + 100) / 200)
