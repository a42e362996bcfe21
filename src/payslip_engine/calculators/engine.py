"""Payroll calculation engine - main orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Iterable

from payslip_engine.calculators.line_builder import LineItemBuilder, PayslipLine
from payslip_engine.calculators.money import round_money, to_decimal
from payslip_engine.calculators.payroll_config import PayrollConfig
from payslip_engine.calculators.rate_resolver import RateResolver
from payslip_engine.calculators.tax_calculator import TaxCalculator
from payslip_engine.calculators.types import (
    ZERO,
    BatchGenerationResult,
    ClampEvent,
    DeductionResult,
    EditResult,
    EditStatus,
    EmployeeContractTerms,
    MissingContractTermsError,
    MonthlyAggregate,
    PayslipRow,
    SkippedEmployee,
)
from payslip_engine.config import get_settings
from payslip_engine.services.state_machine import PayslipStateMachine, PayslipStatus

logger = logging.getLogger(__name__)

# Fields an operator may correct by hand on a draft row
EDITABLE_FIELDS = frozenset(
    {
        "work_days",
        "ot_hours",
        "base_salary",
        "lunch_allowance",
        "transport_allowance",
        "phone_allowance",
        "other_allowance",
        "kpi_bonus",
        "bonus",
        "penalty",
    }
)


class InvalidEditError(ValueError):
    """Raised when an edit names an unknown field or a negative value."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Cannot edit '{field}': {reason}")


@dataclass
class CalculationResult:
    """Result of calculating one employee's payslip."""

    row: PayslipRow
    deductions: DeductionResult
    clamps: list[ClampEvent]
    inputs_fingerprint: str

    @property
    def was_clamped(self) -> bool:
        return len(self.clamps) > 0


class PayrollEngine:
    """Turns a monthly aggregate plus contract terms into a payslip row.

    Calculation pipeline (stable order per employee):
    1) Resolve base pay (monthly minus unpaid leave, or hourly x hours)
    2) Lunch allowance per worked day, flat transport/phone/other
    3) Overtime pay at the resolved OT rate x weekday multiplier
    4) KPI bonus (target x KPI percent)
    5) Gross from the income lines
    6) Insurance and progressive PIT
    7) Net = sum of the signed lines (gross - insurance - PIT)

    The engine is pure: it reads already-fetched inputs, returns new rows and
    never writes to storage.
    """

    def __init__(self, config: PayrollConfig | None = None):
        self.config = config or PayrollConfig()
        self.rate_resolver = RateResolver(self.config)
        self.tax_calculator = TaxCalculator(self.config)
        self.settings = get_settings()

    def generate(
        self, aggregate: MonthlyAggregate, terms: EmployeeContractTerms | None
    ) -> PayslipRow:
        """Generate the initial payslip row for one employee month."""
        return self.calculate(aggregate, terms).row

    def calculate(
        self, aggregate: MonthlyAggregate, terms: EmployeeContractTerms | None
    ) -> CalculationResult:
        """Generate a row and keep the intermediate deduction details."""
        resolved = self.rate_resolver.resolve(aggregate, terms)
        precision = self.config.money_precision
        clamps: list[ClampEvent] = []

        base_pay = round_money(resolved.base_pay, precision)
        if base_pay < 0:
            # More unpaid leave than standard days
            clamps.append(ClampEvent(term="base_salary", raw_value=base_pay))
            logger.debug(
                "Clamped negative base pay %s for employee %s", base_pay, aggregate.employee_id
            )
            base_pay = ZERO

        lunch_rate = terms.lunch_allowance_per_day
        lunch = round_money(lunch_rate * aggregate.actual_work_days, precision)

        ot_pay = round_money(
            aggregate.overtime_hours * resolved.ot_hourly_rate * self.config.ot_multiplier_weekday,
            precision,
        )
        kpi_bonus = round_money(terms.kpi_target * terms.kpi_percent / 100, precision)

        row = PayslipRow(
            employee_id=aggregate.employee_id,
            month=aggregate.month,
            branch_id=terms.branch_id,
            pay_type=terms.pay_type,
            work_days=aggregate.actual_work_days,
            actual_work_days=aggregate.actual_work_days,
            paid_leave_days=aggregate.paid_leave_days,
            ot_hours=aggregate.overtime_hours,
            base_salary=base_pay,
            lunch_allowance=lunch,
            transport_allowance=round_money(terms.transport_allowance, precision),
            phone_allowance=round_money(terms.phone_allowance, precision),
            other_allowance=round_money(terms.other_allowance, precision),
            kpi_bonus=kpi_bonus,
            ot_pay=ot_pay,
            lunch_allowance_rate=lunch_rate,
            ot_hourly_rate=resolved.ot_hourly_rate,
            ot_multiplier=self.config.ot_multiplier_weekday,
            insurance_base=round_money(max(resolved.insurance_base, ZERO), precision),
            has_insurance=terms.has_insurance,
            dependents_count=terms.dependents_count,
        )

        row, deductions = self._derive_totals(row)
        clamps.extend(deductions.clamps)

        inputs_fingerprint = self._compute_inputs_fingerprint(aggregate, terms)
        row = replace(
            row,
            calculation_id=self._generate_calculation_id(
                row.employee_id, row.month, inputs_fingerprint, row.config_fingerprint or ""
            ),
        )

        return CalculationResult(
            row=row,
            deductions=deductions,
            clamps=clamps,
            inputs_fingerprint=inputs_fingerprint,
        )

    def generate_batch(
        self,
        items: Iterable[tuple[MonthlyAggregate, EmployeeContractTerms | None]],
        month: str,
    ) -> BatchGenerationResult:
        """Generate rows for every employee of a month with one config snapshot.

        Employees whose terms are unusable are skipped and reported, never
        paid zero.
        """
        result = BatchGenerationResult(
            month=month, config_fingerprint=self.config.fingerprint()
        )

        for aggregate, terms in items:
            if aggregate.month != month:
                result.skipped.append(
                    SkippedEmployee(
                        employee_id=aggregate.employee_id,
                        reason=f"aggregate is for {aggregate.month}, not {month}",
                    )
                )
                continue
            try:
                row = self.generate(aggregate, terms)
            except MissingContractTermsError as e:
                logger.warning("Skipping employee %s: %s", e.employee_id, e.reason)
                result.skipped.append(
                    SkippedEmployee(employee_id=e.employee_id, reason=e.reason)
                )
                continue

            result.rows.append(row)
            result.total_gross += row.gross_salary
            result.total_net += row.net_salary

        return result

    def apply_edit(self, row: PayslipRow, field: str, value: Any) -> EditResult:
        """Set one input field and re-derive every dependent total.

        A finalized row is returned unchanged with status LOCKED, whatever
        the field or value.
        """
        if not PayslipStateMachine.can_edit(PayslipStatus.of(row.is_finalized)):
            logger.info(
                "Rejected edit of %s on finalized payslip %s/%s", field, row.employee_id, row.month
            )
            return EditResult(row=row, status=EditStatus.LOCKED, field=field)

        if field not in EDITABLE_FIELDS:
            raise InvalidEditError(field, "field is not editable")

        new_value = to_decimal(value)
        if new_value < 0:
            raise InvalidEditError(field, f"value must not be negative, got {new_value}")

        precision = self.config.money_precision
        changes: dict[str, Any] = {}

        if field == "work_days":
            changes["work_days"] = new_value
            changes["lunch_allowance"] = round_money(row.lunch_allowance_rate * new_value, precision)
        elif field == "ot_hours":
            changes["ot_hours"] = new_value
            changes["ot_pay"] = round_money(
                new_value * row.ot_hourly_rate * row.ot_multiplier, precision
            )
        else:
            changes[field] = round_money(new_value, precision)

        edited, _ = self._derive_totals(replace(row, **changes))
        return EditResult(row=edited, status=EditStatus.APPLIED, field=field)

    def recalculate(self, row: PayslipRow) -> PayslipRow:
        """Re-derive gross, deductions and net from a row's current inputs."""
        recalculated, _ = self._derive_totals(row)
        return recalculated

    @staticmethod
    def itemize(row: PayslipRow, include_zero: bool = False) -> list[PayslipLine]:
        """Signed lines of a row; they sum to its net salary."""
        return LineItemBuilder.build_lines(row, include_zero=include_zero)

    def _derive_totals(self, row: PayslipRow) -> tuple[PayslipRow, DeductionResult]:
        gross = LineItemBuilder.calculate_gross_from_lines(LineItemBuilder.income_lines(row))
        deductions = self.tax_calculator.compute_deductions(
            gross,
            row.insurance_base,
            has_insurance=row.has_insurance,
            dependents_count=row.dependents_count,
        )
        derived = replace(
            row,
            gross_salary=gross,
            insurance_deduction=deductions.insurance_deduction,
            taxable_income=deductions.taxable_income,
            pit_deduction=deductions.pit_deduction,
            config_fingerprint=self.config.fingerprint(),
        )

        net = LineItemBuilder.calculate_net_from_lines(
            LineItemBuilder.build_lines(derived, include_zero=True)
        )
        if net < 0:
            logger.warning(
                "Negative net salary %s for employee %s in %s", net, row.employee_id, row.month
            )
        return replace(derived, net_salary=net), deductions

    def _generate_calculation_id(
        self,
        employee_id: str,
        month: str,
        inputs_fingerprint: str,
        config_fingerprint: str,
    ) -> str:
        """Generate deterministic calculation ID."""
        data = {
            "employee_id": employee_id,
            "month": month,
            "engine_version": self.settings.engine_version,
            "inputs_fingerprint": inputs_fingerprint,
            "config_fingerprint": config_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    def _compute_inputs_fingerprint(
        self, aggregate: MonthlyAggregate, terms: EmployeeContractTerms
    ) -> str:
        """Compute fingerprint of all inputs used in calculation."""
        inputs_data = {
            "aggregate": {k: str(v) for k, v in vars(aggregate).items()},
            "terms": {k: str(v) for k, v in vars(terms).items()},
        }
        json_str = json.dumps(inputs_data, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]
