"""API routes."""

from payslip_engine.api.routes.health import router as health_router
from payslip_engine.api.routes.payslips import router as payslips_router
from payslip_engine.api.routes.shifts import router as shifts_router

__all__ = ["health_router", "payslips_router", "shifts_router"]
