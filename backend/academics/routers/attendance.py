from fastapi import APIRouter, Depends, status
from typing import List, Optional

from academics import models, schemas
from academics.core.context import RequestContext
from academics.dependencies import get_engine, get_request_context
from academics.engine import RecordsEngine

router = APIRouter(
    prefix="/attendance",
    tags=["Attendance"]
)


@router.post("/sessions", response_model=schemas.AttendanceSessionOut, status_code=status.HTTP_201_CREATED)
def create_session(
    payload: schemas.SessionCreate,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.attendance.create_session(
        ctx,
        payload.offering_id,
        payload.teacher_id,
        payload.class_date,
        payload.period_number,
        eager_fill_enrolled=payload.eager_fill_enrolled,
        syllabus_covered=payload.syllabus_covered,
        status=models.SessionStatus(payload.status.value)
    )


@router.get("/sessions/{session_id}", response_model=schemas.AttendanceSessionOut)
def get_session(
    session_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.attendance.session_with_records(ctx, session_id)


@router.patch("/sessions/{session_id}", response_model=schemas.AttendanceSessionOut)
def update_session(
    session_id: int,
    payload: schemas.SessionUpdate,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.attendance.update_session(
        ctx,
        session_id,
        status=models.SessionStatus(payload.status.value) if payload.status else None,
        syllabus_covered=payload.syllabus_covered
    )


@router.put("/records", response_model=Optional[schemas.AttendanceRecordOut], summary="Mark or unmark one student")
def set_attendance(
    payload: schemas.SetAttendanceRequest,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    """Returns the stored record, or null when the student is now unmarked."""
    key = payload.session
    return engine.attendance.set_attendance(
        ctx, key.offering_id, key.teacher_id, key.class_date, key.period_number,
        payload.student_id, payload.status
    )


@router.post("/class", response_model=schemas.ClassAttendanceResult, summary="Submit attendance for a whole class")
def record_class_attendance(
    payload: schemas.ClassAttendanceRequest,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.attendance.record_class_attendance(
        ctx,
        payload.offering_id,
        payload.teacher_id,
        payload.class_date,
        payload.period_number,
        payload.entries,
        syllabus_covered=payload.syllabus_covered
    )


@router.get("/offerings/{offering_id}/statistics", response_model=schemas.CourseStatistics)
def course_statistics(
    offering_id: int,
    teacher_id: Optional[int] = None,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.attendance.course_statistics(ctx, offering_id, teacher_id)


@router.get("/offerings/{offering_id}/students", response_model=List[schemas.StudentAttendanceSummary])
def student_attendance(
    offering_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.attendance.student_attendance(ctx, offering_id)
