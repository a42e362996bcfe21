"""Payroll configuration snapshot.

A ``PayrollConfig`` is loaded once per calculation session and passed to
every calculation in that session, so all rows of one run share one set of
rates. The values normally come from the ``system_configs`` key-value table:

    payroll.standard_work_days      26
    payroll.hours_per_day           8
    payroll.ot.weekday_multiplier   1.5
    payroll.insurance.employee_rate 0.105
    payroll.tax.personal_deduction  11000000
    payroll.tax.dependent_deduction 4400000
    payroll.tax.brackets            [{"max": 5000000, "rate": 0.05}, ..., {"max": null, "rate": 0.35}]
    payroll.money_precision         1
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable, Mapping

from payslip_engine.calculators.money import to_decimal


class InvalidPayrollConfigError(ValueError):
    """Raised when a configuration value cannot be used."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid payroll config '{key}': {reason}")


@dataclass(frozen=True)
class TaxBracket:
    """Marginal tax bracket: ``rate`` applies to income up to ``ceiling``."""

    ceiling: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g. 0.05 for 5%


# Vietnamese PIT schedule for monthly employment income
VN_PIT_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(Decimal("5000000"), Decimal("0.05")),
    TaxBracket(Decimal("10000000"), Decimal("0.10")),
    TaxBracket(Decimal("18000000"), Decimal("0.15")),
    TaxBracket(Decimal("32000000"), Decimal("0.20")),
    TaxBracket(Decimal("52000000"), Decimal("0.25")),
    TaxBracket(Decimal("80000000"), Decimal("0.30")),
    TaxBracket(None, Decimal("0.35")),
)

KEY_STANDARD_WORK_DAYS = "payroll.standard_work_days"
KEY_HOURS_PER_DAY = "payroll.hours_per_day"
KEY_OT_WEEKDAY_MULTIPLIER = "payroll.ot.weekday_multiplier"
KEY_INSURANCE_EMPLOYEE_RATE = "payroll.insurance.employee_rate"
KEY_PERSONAL_DEDUCTION = "payroll.tax.personal_deduction"
KEY_DEPENDENT_DEDUCTION = "payroll.tax.dependent_deduction"
KEY_TAX_BRACKETS = "payroll.tax.brackets"
KEY_MONEY_PRECISION = "payroll.money_precision"


@dataclass(frozen=True)
class PayrollConfig:
    """Process-wide payroll rates, read-only during a calculation."""

    standard_work_days_per_month: Decimal = Decimal("26")
    hours_per_day: Decimal = Decimal("8")
    ot_multiplier_weekday: Decimal = Decimal("1.5")
    insurance_employee_rate: Decimal = Decimal("0.105")
    personal_deduction_threshold: Decimal = Decimal("11000000")
    dependent_deduction: Decimal = Decimal("4400000")
    tax_brackets: tuple[TaxBracket, ...] = VN_PIT_BRACKETS
    money_precision: Decimal = Decimal("1")
    version: str = "default"

    def __post_init__(self) -> None:
        if self.standard_work_days_per_month <= 0:
            raise InvalidPayrollConfigError(KEY_STANDARD_WORK_DAYS, "must be positive")
        if self.hours_per_day <= 0:
            raise InvalidPayrollConfigError(KEY_HOURS_PER_DAY, "must be positive")
        if self.ot_multiplier_weekday < 0:
            raise InvalidPayrollConfigError(KEY_OT_WEEKDAY_MULTIPLIER, "must not be negative")
        if not Decimal("0") <= self.insurance_employee_rate <= Decimal("1"):
            raise InvalidPayrollConfigError(KEY_INSURANCE_EMPLOYEE_RATE, "must be between 0 and 1")
        if self.personal_deduction_threshold < 0:
            raise InvalidPayrollConfigError(KEY_PERSONAL_DEDUCTION, "must not be negative")
        if self.dependent_deduction < 0:
            raise InvalidPayrollConfigError(KEY_DEPENDENT_DEDUCTION, "must not be negative")
        if self.money_precision <= 0:
            raise InvalidPayrollConfigError(KEY_MONEY_PRECISION, "must be positive")
        validate_brackets(self.tax_brackets)

    @classmethod
    def from_key_values(
        cls, values: Mapping[str, Any], version: str = "system_configs"
    ) -> PayrollConfig:
        """Build a snapshot from key-value config rows, defaulting missing keys."""
        kwargs: dict[str, Any] = {"version": version}
        scalar_keys = {
            KEY_STANDARD_WORK_DAYS: "standard_work_days_per_month",
            KEY_HOURS_PER_DAY: "hours_per_day",
            KEY_OT_WEEKDAY_MULTIPLIER: "ot_multiplier_weekday",
            KEY_INSURANCE_EMPLOYEE_RATE: "insurance_employee_rate",
            KEY_PERSONAL_DEDUCTION: "personal_deduction_threshold",
            KEY_DEPENDENT_DEDUCTION: "dependent_deduction",
            KEY_MONEY_PRECISION: "money_precision",
        }
        for key, attr in scalar_keys.items():
            if values.get(key) is None:
                continue
            try:
                kwargs[attr] = to_decimal(values[key])
            except ValueError as e:
                raise InvalidPayrollConfigError(key, str(e)) from e

        if values.get(KEY_TAX_BRACKETS) is not None:
            kwargs["tax_brackets"] = parse_brackets(values[KEY_TAX_BRACKETS])

        return cls(**kwargs)

    def to_key_values(self) -> dict[str, Any]:
        """Inverse of ``from_key_values``; decimals are written as strings."""
        canonical = self.to_canonical_dict()
        return {
            KEY_STANDARD_WORK_DAYS: canonical["standard_work_days_per_month"],
            KEY_HOURS_PER_DAY: canonical["hours_per_day"],
            KEY_OT_WEEKDAY_MULTIPLIER: canonical["ot_multiplier_weekday"],
            KEY_INSURANCE_EMPLOYEE_RATE: canonical["insurance_employee_rate"],
            KEY_PERSONAL_DEDUCTION: canonical["personal_deduction_threshold"],
            KEY_DEPENDENT_DEDUCTION: canonical["dependent_deduction"],
            KEY_TAX_BRACKETS: canonical["tax_brackets"],
            KEY_MONEY_PRECISION: canonical["money_precision"],
        }

    def for_month(self, standard_work_days: int | Decimal) -> PayrollConfig:
        """Return a copy using a calendar-derived standard day count.

        A zero count keeps the configured value.
        """
        days = to_decimal(standard_work_days)
        if days <= 0:
            return self
        return replace(self, standard_work_days_per_month=days)

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "standard_work_days_per_month": str(self.standard_work_days_per_month),
            "hours_per_day": str(self.hours_per_day),
            "ot_multiplier_weekday": str(self.ot_multiplier_weekday),
            "insurance_employee_rate": str(self.insurance_employee_rate),
            "personal_deduction_threshold": str(self.personal_deduction_threshold),
            "dependent_deduction": str(self.dependent_deduction),
            "tax_brackets": [
                {"max": str(b.ceiling) if b.ceiling is not None else None, "rate": str(b.rate)}
                for b in self.tax_brackets
            ],
            "money_precision": str(self.money_precision),
        }

    def fingerprint(self) -> str:
        """Stable hash identifying this snapshot's values."""
        json_str = json.dumps(self.to_canonical_dict(), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]


def parse_brackets(raw: Any) -> tuple[TaxBracket, ...]:
    """Parse brackets from a JSON string or a list of ``{"max", "rate"}`` dicts."""
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidPayrollConfigError(KEY_TAX_BRACKETS, f"not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise InvalidPayrollConfigError(KEY_TAX_BRACKETS, "expected a list of brackets")

    brackets = []
    for b in raw:
        if not isinstance(b, Mapping) or "rate" not in b:
            raise InvalidPayrollConfigError(KEY_TAX_BRACKETS, f"bad bracket entry {b!r}")
        ceiling = b.get("max")
        try:
            brackets.append(
                TaxBracket(
                    ceiling=to_decimal(ceiling) if ceiling is not None else None,
                    rate=to_decimal(b["rate"]),
                )
            )
        except ValueError as e:
            raise InvalidPayrollConfigError(KEY_TAX_BRACKETS, str(e)) from e

    validated = tuple(brackets)
    validate_brackets(validated)
    return validated


def validate_brackets(brackets: Iterable[TaxBracket]) -> None:
    """Check that ceilings strictly increase and only the last is open."""
    brackets = list(brackets)
    if not brackets:
        raise InvalidPayrollConfigError(KEY_TAX_BRACKETS, "at least one bracket is required")

    previous = Decimal("0")
    for i, bracket in enumerate(brackets):
        if not Decimal("0") <= bracket.rate <= Decimal("1"):
            raise InvalidPayrollConfigError(
                KEY_TAX_BRACKETS, f"bracket {i} rate {bracket.rate} must be between 0 and 1"
            )
        if bracket.ceiling is None:
            if i != len(brackets) - 1:
                raise InvalidPayrollConfigError(
                    KEY_TAX_BRACKETS, "only the last bracket may be open-ended"
                )
            continue
        if bracket.ceiling <= previous:
            raise InvalidPayrollConfigError(
                KEY_TAX_BRACKETS, f"bracket {i} ceiling {bracket.ceiling} is not increasing"
            )
        previous = bracket.ceiling
