from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional

from academics import schemas
from academics.core.context import RequestContext
from academics.dependencies import get_engine, get_request_context
from academics.engine import RecordsEngine
from academics.offering_matcher import course_year
from academics.utils.semesters import semester_to_year

router = APIRouter(
    prefix="/offerings",
    tags=["Offerings"]
)


@router.get("/semester", response_model=schemas.SemesterOfferingsOut, summary="Resolve a department's offerings for a semester")
def resolve_semester_offerings(
    college_id: int,
    department_id: int,
    semester: int = Query(..., ge=1, le=8),
    academic_year_id: Optional[int] = None,
    section_id: Optional[int] = None,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    """
    Without an explicit academic year, every active year of the college is
    tried newest first and the first one with offerings is used.
    """
    resolution = engine.calendar.resolve_offerings_for_semester(
        ctx, college_id, department_id, semester,
        academic_year_id=academic_year_id, section_id=section_id
    )
    return schemas.SemesterOfferingsOut(
        academic_year=schemas.AcademicYearOut.model_validate(resolution.academic_year),
        semester=semester,
        offerings=[schemas.OfferingOut.model_validate(o) for o in resolution.offerings]
    )


@router.post("", response_model=schemas.OfferingOut, summary="Find or create a course offering")
def find_or_create_offering(
    payload: schemas.OfferingCreate,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.offerings.find_or_create_offering(
        ctx, payload.course_id, payload.semester, payload.academic_year_id,
        section_id=payload.section_id, teacher_id=payload.teacher_id
    )


@router.get("/by-semester", response_model=List[schemas.SemesterGroupOut], summary="Core offerings grouped by semester")
def offerings_by_semester(
    college_id: int,
    department_id: int,
    academic_year_id: Optional[int] = None,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    grouped = engine.offerings.courses_by_semester(ctx, college_id, department_id, academic_year_id)
    return [
        schemas.SemesterGroupOut(
            semester=semester,
            year_of_study=semester_to_year(semester),
            offerings=[schemas.OfferingOut.model_validate(o) for o in items]
        )
        for semester, items in grouped.items()
    ]


@router.get("/{offering_id}/year-of-study", summary="Year of study of an offering's course")
def offering_year_of_study(
    offering_id: int,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    offering = engine.offerings.get_offering(ctx, offering_id)
    return {
        "offering_id": offering.id,
        "course_code": offering.course.code,
        "year_of_study": course_year(offering.course, [offering]),
        "year_from_code": course_year(offering.course),
    }


@router.post("/academic-years", response_model=schemas.AcademicYearOut, status_code=status.HTTP_201_CREATED, summary="Ensure an academic year exists")
def ensure_academic_year(
    payload: schemas.AcademicYearCreate,
    engine: RecordsEngine = Depends(get_engine),
    ctx: RequestContext = Depends(get_request_context)
):
    return engine.calendar.ensure_academic_year(
        ctx, payload.college_id, payload.start_year, activate=payload.activate
    )
