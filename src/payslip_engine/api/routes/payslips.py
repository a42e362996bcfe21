"""Payslip API endpoints."""

from fastapi import APIRouter, Query, status

from payslip_engine.api.dependencies import DbSession, PayrollConfigDep
from payslip_engine.api.schemas import (
    MONTH_PATTERN,
    EditRequest,
    EditResponse,
    FinalizeRequest,
    FinalizeResponse,
    GenerateRequest,
    GenerateResponse,
    PayslipLineSchema,
    PayslipLinesRequest,
    PayslipLinesResponse,
    PayslipListResponse,
    PayslipRowSchema,
    SavePayslipsRequest,
    SavePayslipsResponse,
    UnfinalizeRequest,
)
from payslip_engine.calculators.engine import PayrollEngine
from payslip_engine.calculators.line_builder import LineItemBuilder
from payslip_engine.calculators.types import ZERO
from payslip_engine.calculators.work_calendar import parse_month, standard_work_days
from payslip_engine.services.locking_service import FinalizedBatch
from payslip_engine.services.payroll_service import PayrollService

router = APIRouter(prefix="/payslips", tags=["payslips"])


# ============================================================================
# Calculation (pure, nothing is stored)
# ============================================================================


@router.post(
    "/generate",
    response_model=GenerateResponse,
    summary="Generate draft payslips for a month",
)
async def generate_payslips(request: GenerateRequest, config: PayrollConfigDep) -> GenerateResponse:
    """Calculate draft rows with one config snapshot.

    Employees without usable contract terms are reported in ``skipped``.
    """
    if request.use_calendar:
        year, month = parse_month(request.month)
        holidays = [h.to_domain() for h in request.holidays]
        config = config.for_month(standard_work_days(year, month, holidays))

    engine = PayrollEngine(config)
    result = engine.generate_batch(
        [
            (item.aggregate.to_domain(), item.terms.to_domain() if item.terms else None)
            for item in request.items
        ],
        request.month,
    )
    return GenerateResponse.model_validate(result)


@router.post(
    "/edit",
    response_model=EditResponse,
    summary="Apply a manual edit to a draft row",
)
async def edit_payslip(request: EditRequest, config: PayrollConfigDep) -> EditResponse:
    """Set one field and re-derive totals. Finalized rows come back locked."""
    engine = PayrollEngine(config)
    result = engine.apply_edit(request.row.to_domain(), request.field, request.value)
    return EditResponse(
        row=PayslipRowSchema.model_validate(result.row),
        status=result.status,
        field=result.field,
    )


@router.post(
    "/lines",
    response_model=PayslipLinesResponse,
    summary="Itemize a payslip row into signed lines",
)
async def itemize_payslip(request: PayslipLinesRequest) -> PayslipLinesResponse:
    """Earnings and allowances are positive; penalty, insurance and PIT negative."""
    row = request.row.to_domain()
    lines = PayrollEngine.itemize(row, include_zero=request.include_zero)
    return PayslipLinesResponse(
        employee_id=row.employee_id,
        month=row.month,
        lines=[
            PayslipLineSchema(
                code=line.code,
                category=line.category,
                amount=line.amount,
                quantity=line.quantity,
                rate=line.rate,
                explanation=line.explanation,
                line_hash=LineItemBuilder.compute_line_hash(line),
            )
            for line in lines
        ],
        totals_by_category=LineItemBuilder.sum_by_category(lines),
        gross_salary=LineItemBuilder.calculate_gross_from_lines(lines),
        net_salary=LineItemBuilder.calculate_net_from_lines(lines),
    )


# ============================================================================
# Storage and finalization
# ============================================================================


@router.post(
    "",
    response_model=SavePayslipsResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save draft payslips",
)
async def save_payslips(request: SavePayslipsRequest, db: DbSession) -> SavePayslipsResponse:
    service = PayrollService(db)
    written = await service.save_drafts([r.to_domain() for r in request.rows])
    return SavePayslipsResponse(written=written)


@router.get(
    "",
    response_model=PayslipListResponse,
    summary="List stored payslips of a month",
)
async def list_payslips(
    db: DbSession,
    month: str = Query(pattern=MONTH_PATTERN),
    branch_id: str | None = None,
) -> PayslipListResponse:
    service = PayrollService(db)
    rows = await service.list_rows(month, branch_id)
    return PayslipListResponse(
        month=month,
        branch_id=branch_id,
        rows=[PayslipRowSchema.model_validate(r) for r in rows],
        total_gross=sum((r.gross_salary for r in rows), start=ZERO),
        total_net=sum((r.net_salary for r in rows), start=ZERO),
    )


@router.post(
    "/finalize",
    response_model=FinalizeResponse,
    summary="Finalize every payslip of a month and branch",
)
async def finalize_payslips(request: FinalizeRequest, db: DbSession) -> FinalizeResponse:
    service = PayrollService(db)
    batch = await service.finalize(request.month, request.branch_id, request.actor_id)
    return _batch_response(batch)


@router.post(
    "/unfinalize",
    response_model=FinalizeResponse,
    summary="Re-open a finalized month and branch",
)
async def unfinalize_payslips(request: UnfinalizeRequest, db: DbSession) -> FinalizeResponse:
    service = PayrollService(db)
    batch = await service.unfinalize(
        request.month, request.branch_id, request.actor_id, request.reason
    )
    return _batch_response(batch)


def _batch_response(batch: FinalizedBatch) -> FinalizeResponse:
    return FinalizeResponse(
        month=batch.month,
        branch_id=batch.branch_id,
        status=batch.to_status.value,
        actor_id=batch.actor_id,
        at=batch.at,
        reason=batch.reason,
        employee_ids=batch.employee_ids,
    )
