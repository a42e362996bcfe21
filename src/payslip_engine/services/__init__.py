"""Payslip engine services."""

from payslip_engine.services.state_machine import (
    InvalidTransitionError,
    PayslipStateMachine,
    PayslipStatus,
    RegistrationStateMachine,
)
from payslip_engine.services.locking_service import (
    EmptyBatchError,
    FinalizedBatch,
    LockingService,
    MixedBatchError,
    ReopenReasonRequiredError,
)

__all__ = [
    "PayslipStateMachine",
    "PayslipStatus",
    "RegistrationStateMachine",
    "InvalidTransitionError",
    "LockingService",
    "FinalizedBatch",
    "EmptyBatchError",
    "MixedBatchError",
    "ReopenReasonRequiredError",
]
