"""Shift registration approval endpoints.

The approval screen sends the registrations it shows plus the current
selection; every call returns the next selection. Nothing is stored here.
"""

from fastapi import APIRouter, HTTPException, status

from payslip_engine.api.schemas import (
    ApprovalBatchResponse,
    ConflictMapResponse,
    OverlapSchema,
    SelectAllRequest,
    SelectionRequest,
    SelectionResponse,
    SkippedRegistrationSchema,
    ToggleRequest,
    ValidateRegistrationsResponse,
)
from payslip_engine.scheduling.conflict_resolver import (
    ShiftConflictResolver,
    validate_shifts_by_date,
)
from payslip_engine.scheduling.types import SelectionResult

router = APIRouter(prefix="/shift-registrations", tags=["shift-registrations"])


def _resolver(request: SelectionRequest) -> ShiftConflictResolver:
    return ShiftConflictResolver([r.to_domain() for r in request.registrations])


def _selection_response(result: SelectionResult) -> SelectionResponse:
    return SelectionResponse(
        selected=sorted(result.selected),
        skipped=[SkippedRegistrationSchema.model_validate(s) for s in result.skipped],
    )


@router.post("/toggle", response_model=SelectionResponse)
async def toggle_registration(request: ToggleRequest) -> SelectionResponse:
    """Select or deselect one registration."""
    resolver = _resolver(request)
    try:
        result = resolver.toggle(request.registration_id, request.selection)
    except KeyError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Registration {request.registration_id} not found",
        )
    return _selection_response(result)


@router.post("/select-all", response_model=SelectionResponse)
async def select_all_for_shift(request: SelectAllRequest) -> SelectionResponse:
    """Select or deselect every registration of one shift on one date."""
    resolver = _resolver(request)
    group = resolver.shift_group(request.shift_date, request.shift_id)
    result = resolver.select_all_for_shift(group, request.selection, request.select)
    return _selection_response(result)


@router.post("/conflicts", response_model=ConflictMapResponse)
async def conflict_map(request: SelectionRequest) -> ConflictMapResponse:
    """Which unselected registrations would collide with the selection."""
    resolver = _resolver(request)
    conflicts = resolver.conflicting_registrations(request.selection)
    return ConflictMapResponse(
        conflicts={reg_id: c.conflict_shift_name for reg_id, c in conflicts.items()}
    )


@router.post("/validate", response_model=ValidateRegistrationsResponse)
async def validate_registrations(request: SelectionRequest) -> ValidateRegistrationsResponse:
    """Report overlapping registrations of one employee, grouped by date."""
    errors = validate_shifts_by_date([r.to_domain() for r in request.registrations])
    return ValidateRegistrationsResponse(
        valid=not errors,
        conflicts={
            shift_date: [
                OverlapSchema(
                    first_id=c.first.id,
                    second_id=c.second.id,
                    employee_id=c.first.employee_id,
                    overlap=str(c.overlap),
                )
                for c in conflicts
            ]
            for shift_date, conflicts in errors.items()
        },
    )


@router.post("/approval-batch", response_model=ApprovalBatchResponse)
async def build_approval_batch(request: SelectionRequest) -> ApprovalBatchResponse:
    """Turn the submitted selection into approve and reject decisions."""
    resolver = _resolver(request)
    try:
        batch = resolver.build_approval_batch(request.selection)
    except KeyError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e.args[0]))
    return ApprovalBatchResponse(
        approve=batch.approve,
        reject=batch.reject,
        unchanged=batch.unchanged,
        skipped=[SkippedRegistrationSchema.model_validate(s) for s in batch.skipped],
    )
