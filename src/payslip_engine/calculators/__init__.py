"""Payroll calculation engine."""

from payslip_engine.calculators.engine import CalculationResult, PayrollEngine
from payslip_engine.calculators.line_builder import LineItemBuilder
from payslip_engine.calculators.payroll_config import PayrollConfig, TaxBracket
from payslip_engine.calculators.rate_resolver import RateResolver
from payslip_engine.calculators.tax_calculator import TaxCalculator

__all__ = [
    "PayrollEngine",
    "CalculationResult",
    "LineItemBuilder",
    "PayrollConfig",
    "RateResolver",
    "TaxBracket",
    "TaxCalculator",
]
