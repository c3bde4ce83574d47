from fastapi import APIRouter, Depends

from academics import schemas
from academics.core.context import RequestContext
from academics.dependencies import get_engine, get_request_context
from academics.engine import RecordsEngine

router = APIRouter(
    prefix="/marks",
    tags=["Marks"]
)


@router.put("/enrollments/{enrollment_id}", response_model=schemas.MarksOut, summary="Partially update theory and/or lab marks")
def upsert_marks(
    enrollment_id: int,
    payload: schemas.MarksUpdateRequest,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Only the fields present in the body are written; sending `null` clears a
    field. MSE3 is cleared whenever MSE1 + MSE2 reaches 20.
    """
    return engine.marks.upsert_marks(ctx, enrollment_id, payload.model_dump(exclude_unset=True))


@router.get("/enrollments/{enrollment_id}", response_model=schemas.MarksOut)
def get_marks(
    enrollment_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.marks.get_marks(ctx, enrollment_id)


@router.get("/offerings/{offering_id}/summary", response_model=schemas.PassSummary)
def offering_pass_summary(
    offering_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.marks.offering_pass_summary(ctx, offering_id)
