# --------------------------------
# Engine errors -> HTTP responses
# --------------------------------
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from policyflow.core.errors import (
    EngineFault,
    FraudCheckFailed,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    PolicyWorkflowError,
    ValidationError,
)
from policyflow.observability.tracing import log_event, new_trace_id

STATUS_CODES: dict[type[PolicyWorkflowError], int] = {
    ValidationError: 422,
    PermissionDenied: 403,
    NotFound: 404,
    InvalidTransition: 409,
    FraudCheckFailed: 409,
}


def _status_for(exc: PolicyWorkflowError) -> int:
    for error_type, status_code in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


async def workflow_error_handler(request: Request, exc: PolicyWorkflowError) -> JSONResponse:
    return JSONResponse(
        status_code=_status_for(exc),
        content={"error": exc.kind, "reason": exc.reason},
    )


async def engine_fault_handler(request: Request, exc: EngineFault) -> JSONResponse:
    # Details stay in the log; clients get a generic fault.
    log_event(
        'request.fault',
        trace_id=new_trace_id(),
        level=logging.ERROR,
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
        cause=repr(exc.__cause__) if exc.__cause__ else None,
    )
    return JSONResponse(
        status_code=500,
        content={"error": exc.kind, "reason": "Internal error while processing the policy"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PolicyWorkflowError, workflow_error_handler)
    app.add_exception_handler(EngineFault, engine_fault_handler)
