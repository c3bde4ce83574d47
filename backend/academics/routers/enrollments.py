from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from academics import schemas
from academics.core.context import RequestContext
from academics.dependencies import get_engine, get_request_context
from academics.engine import RecordsEngine

router = APIRouter(
    prefix="/enrollments",
    tags=["Enrollments"]
)


@router.post("", response_model=schemas.EnrollmentResult, summary="Enroll one student in an offering")
def enroll_student(
    payload: schemas.EnrollStudentRequest,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    """Re-submitting the same pair reports `already_enrolled` instead of failing."""
    return engine.enrollments.enroll_student(
        ctx, payload.student_id, payload.offering_id, payload.academic_year_id
    )


@router.post("/batch", response_model=schemas.BatchEnrollmentResult, summary="Enroll many students in an offering")
def enroll_batch(
    payload: schemas.EnrollBatchRequest,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.enrollments.enroll_batch(
        ctx, payload.offering_id, payload.student_ids, payload.academic_year_id
    )


@router.post("/students/{student_id}/auto-enroll", response_model=schemas.AutoEnrollmentResult)
def auto_enroll(
    student_id: int,
    semester: Optional[int] = Query(None, ge=1, le=8),
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.enrollments.auto_enroll_for_semester(ctx, student_id, semester)


@router.post("/students/{student_id}/promote", response_model=schemas.PromotionResult)
def promote_student(
    student_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.enrollments.promote_student(ctx, student_id)


@router.get("/eligible", response_model=List[schemas.StudentOut], summary="Students who may still enroll in a course")
def eligible_students(
    course_id: int,
    semester: int = Query(..., ge=1, le=8),
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.enrollments.eligible_students(ctx, course_id, semester)


@router.post("/offerings/{offering_id}/align-academic-year")
def align_academic_year(
    offering_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    updated = engine.enrollments.align_academic_year(ctx, offering_id)
    return {"offering_id": offering_id, "updated": updated}
