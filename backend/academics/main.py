from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from academics import schemas, exceptions
from academics.core.context import RequestContext
from academics.db import Store
from academics.engine import RecordsEngine
from academics.logger import get_logger
from academics.routers import offerings, enrollments, attendance, marks

logger = get_logger(__name__)

# --- Error code to HTTP status mapping ---

STATUS_BY_ERROR = (
    (exceptions.NotFoundError, status.HTTP_404_NOT_FOUND),
    (exceptions.NoUsableAcademicYearError, status.HTTP_404_NOT_FOUND),
    (exceptions.OfferingCreationNotPermittedError, status.HTTP_404_NOT_FOUND),
    (exceptions.ConflictError, status.HTTP_409_CONFLICT),
    (exceptions.RestrictedDepartmentError, status.HTTP_403_FORBIDDEN),
    (exceptions.InvalidRequestError, status.HTTP_400_BAD_REQUEST),
)

def status_for(exc: exceptions.EngineError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def create_app(store: Store | None = None) -> FastAPI:
    """
    Builds the application. The store is opened here (or handed in by the
    caller) and disposed when the application shuts down.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_store = store or Store()
        app_store.create_all()
        app.state.store = app_store
        app.state.engine = RecordsEngine(app_store)
        logger.info("Records engine started on %s", app_store.dialect_name)
        try:
            yield
        finally:
            app_store.dispose()

    app = FastAPI(title="Academic Records Engine", lifespan=lifespan)

    # --- Request context ---

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        ctx = RequestContext(method=request.method, path=request.url.path)
        request.state.ctx = ctx
        response = await call_next(request)
        response.headers["X-Request-ID"] = ctx.request_id
        logger.debug(
            "%s %s -> %s in %.1fms (%d queries) [%s]",
            ctx.method, ctx.path, response.status_code,
            ctx.elapsed_ms(), ctx.query_count, ctx.request_id
        )
        return response

    # --- Exception Handlers ---

    @app.exception_handler(exceptions.EngineError)
    async def engine_exception_handler(request: Request, exc: exceptions.EngineError):
        status_code = status_for(exc)
        logger.warning(f"{exc.error_code} for {request.url}: {exc.detail}")
        error_content = schemas.ErrorResponse(
            status_code=status_code,
            detail=exc.detail,
            error_code=exc.error_code
        )
        return JSONResponse(status_code=status_code, content=error_content.model_dump())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={
                "detail": exc.errors()
            }
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.warning(f"HTTP error {exc.status_code} for {request.url}: {exc.detail}")
        error_content = schemas.ErrorResponse(
            status_code=exc.status_code,
            detail=str(exc.detail)
        )
        return JSONResponse(status_code=exc.status_code, content=error_content.model_dump())

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled server error for {request.url}: {exc}", exc_info=True)
        error_content = schemas.ErrorResponse(
            status_code=500,
            detail="An internal server error occurred.",
            error_code="INTERNAL_SERVER_ERROR"
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_content.model_dump()
        )

    # --- Router Inclusion ---
    app.include_router(offerings.router)
    app.include_router(enrollments.router)
    app.include_router(attendance.router)
    app.include_router(marks.router)

    @app.get("/")
    def home():
        return {"message": "Records engine is running!"}

    return app


app = create_app()
