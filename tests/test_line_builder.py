"""Tests for line item builder and money helpers."""

from decimal import Decimal

import pytest

from payslip_engine.calculators.line_builder import LineItemBuilder, PayslipLine
from payslip_engine.calculators.money import format_money, round_money, to_decimal
from payslip_engine.calculators.types import LineCategory, PayslipRow


def sample_row() -> PayslipRow:
    return PayslipRow(
        employee_id="emp-001",
        month="2024-09",
        work_days=Decimal("20"),
        base_salary=Decimal("10000000"),
        lunch_allowance=Decimal("600000"),
        lunch_allowance_rate=Decimal("30000"),
        transport_allowance=Decimal("500000"),
        bonus=Decimal("1000000"),
        penalty=Decimal("300000"),
        insurance_deduction=Decimal("1050000"),
        pit_deduction=Decimal("12500"),
    )


class TestMoney:
    """Test Decimal helpers."""

    def test_round_half_up(self):
        """Rounding is half-up to whole dong by default."""
        assert round_money(Decimal("10.5")) == Decimal("11")
        assert round_money(Decimal("10.49")) == Decimal("10")
        assert round_money(Decimal("10.125"), Decimal("0.01")) == Decimal("10.13")

    def test_to_decimal(self):
        """Floats go through str so they keep their written value."""
        assert to_decimal(0.105) == Decimal("0.105")
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("20") == Decimal("20")
        with pytest.raises(ValueError):
            to_decimal("abc")

    def test_format_money(self):
        """Thousands separators and currency suffix."""
        assert format_money(Decimal("1050000")) == "1,050,000 VND"
        assert format_money(Decimal("12.5"), currency="") == "12.50"


class TestLineItemBuilder:
    """Test line item builder functionality."""

    def test_income_line_signs(self):
        """Earnings, allowances and bonuses are positive; penalties negative."""
        lines = LineItemBuilder.build_lines(sample_row())
        by_code = {line.code: line for line in lines}

        assert by_code["BASE"].amount == Decimal("10000000")
        assert by_code["LUNCH"].quantity == Decimal("20")
        assert by_code["LUNCH"].rate == Decimal("30000")
        assert by_code["PENALTY"].amount == Decimal("-300000")
        assert by_code["INSURANCE"].amount == Decimal("-1050000")
        assert by_code["PIT"].amount == Decimal("-12500")

    def test_zero_lines_omitted(self):
        """Zero lines are left out unless requested."""
        row = sample_row()
        codes = [line.code for line in LineItemBuilder.build_lines(row)]
        assert "PHONE" not in codes
        assert "OT" not in codes

        all_codes = [line.code for line in LineItemBuilder.build_lines(row, include_zero=True)]
        assert "PHONE" in all_codes
        assert len(all_codes) == 11

    def test_gross_and_net_from_lines(self):
        """Gross excludes withholdings; net is the sum of every line."""
        lines = LineItemBuilder.build_lines(sample_row())

        gross = LineItemBuilder.calculate_gross_from_lines(lines)
        net = LineItemBuilder.calculate_net_from_lines(lines)

        assert gross == Decimal("11800000")
        assert net == Decimal("10737500")

    def test_sum_by_category(self):
        """Totals are grouped by line category."""
        totals = LineItemBuilder.sum_by_category(LineItemBuilder.build_lines(sample_row()))

        assert totals[LineCategory.EARNING] == Decimal("10000000")
        assert totals[LineCategory.ALLOWANCE] == Decimal("1100000")
        assert totals[LineCategory.BONUS] == Decimal("1000000")
        assert totals[LineCategory.PENALTY] == Decimal("-300000")
        assert totals[LineCategory.TAX] == Decimal("-12500")

    def test_line_hash_is_deterministic(self):
        """Identical lines hash identically; explanations are not hashed."""
        a = PayslipLine(code="BONUS", category=LineCategory.BONUS, amount=Decimal("100"))
        b = PayslipLine(
            code="BONUS", category=LineCategory.BONUS, amount=Decimal("100"), explanation="x"
        )
        c = PayslipLine(code="BONUS", category=LineCategory.BONUS, amount=Decimal("101"))

        assert LineItemBuilder.compute_line_hash(a) == LineItemBuilder.compute_line_hash(b)
        assert LineItemBuilder.compute_line_hash(a) != LineItemBuilder.compute_line_hash(c)
