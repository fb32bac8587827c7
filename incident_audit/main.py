# incident_audit/main.py

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from incident_audit.api.middleware import AuditTriggerMiddleware, CorrelationIdMiddleware
from incident_audit.api.routers import health, incident_logs
from incident_audit.application.exceptions import (
    ApplicationError,
    ForbiddenError,
    InvalidAmendmentError,
    PersistenceFailureError,
    RecordNotFoundError,
    UnauthenticatedError,
)
from incident_audit.config.logging import configure_logging
from incident_audit.config.settings import get_settings
from incident_audit.domain.exceptions import DomainError, InvalidRecordShapeError
from incident_audit.security.exceptions import AuthenticationError, AuthorizationError

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    debug=settings.debug,
)

# Middleware order: last added runs first (outermost). Request flow: CorrelationId -> AuditTrigger.
app.add_middleware(AuditTriggerMiddleware)
app.add_middleware(CorrelationIdMiddleware)


@app.exception_handler(UnauthenticatedError)
async def unauthenticated_error_handler(request, exc: UnauthenticatedError):
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"detail": exc.message})


@app.exception_handler(ForbiddenError)
async def forbidden_error_handler(request, exc: ForbiddenError):
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request, exc: AuthorizationError):
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(RecordNotFoundError)
async def record_not_found_error_handler(request, exc: RecordNotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(InvalidAmendmentError)
async def invalid_amendment_error_handler(request, exc: InvalidAmendmentError):
    return JSONResponse(
        status_code=422,
        content={"detail": exc.message, "errors": list(exc.errors)},
    )


@app.exception_handler(PersistenceFailureError)
async def persistence_failure_error_handler(request, exc: PersistenceFailureError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(InvalidRecordShapeError)
async def invalid_record_shape_error_handler(request, exc: InvalidRecordShapeError):
    return JSONResponse(status_code=500, content={"detail": exc.message})


@app.exception_handler(DomainError)
async def domain_error_handler(request, exc: DomainError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request, exc: Exception):
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


# Routers: /health, /incident-logs
app.include_router(health.router)
app.include_router(incident_logs.router, prefix="/incident-logs")
