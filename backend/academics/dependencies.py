from fastapi import Request

from academics.core.context import RequestContext
from academics.engine import RecordsEngine

# --- Core Dependencies ---

def get_engine(request: Request) -> RecordsEngine:
    """The engine built by the application's lifespan handler."""
    return request.app.state.engine

def get_request_context(request: Request) -> RequestContext:
    """
    The context created by the request middleware; requests that bypass it
    (e.g. direct dependency calls in tests) get a fresh one.
    """
    ctx = getattr(request.state, "ctx", None)
    if ctx is None:
        ctx = RequestContext(method=request.method, path=request.url.path)
        request.state.ctx = ctx
    return ctx
