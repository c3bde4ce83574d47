from typing import List

from sqlalchemy.orm import Session

from academics import crud, models, exceptions
from academics.core.context import RequestContext
from academics.db import Store
from academics.logger import get_logger
from academics.utils.semesters import semester_to_year, year_from_course_code

logger = get_logger(__name__)


class OfferingMatcher:
    """
    Finds the course offering(s) for a course or a department's core courses
    in a given semester and academic year, creating them lazily when the
    calling flow is allowed to.
    """

    def __init__(self, store: Store):
        self.store = store

    # --- Public operations ---

    def get_offering(self, ctx: RequestContext, offering_id: int) -> models.CourseOffering:
        with self.store.session_scope(ctx) as db:
            return crud.get_offering(db, offering_id)

    def find_or_create_offering(
        self,
        ctx: RequestContext,
        course_id: int,
        semester: int,
        academic_year_id: int,
        section_id: int | None = None,
        teacher_id: int | None = None,
        allow_create: bool = True
    ) -> models.CourseOffering:
        with self.store.session_scope(ctx) as db:
            offering = self._find_or_create(
                db, course_id, semester, academic_year_id,
                section_id=section_id, teacher_id=teacher_id, allow_create=allow_create
            )
            db.commit()
            return crud.get_offering(db, offering.id)

    def offerings_for_department(
        self,
        ctx: RequestContext,
        college_id: int,
        department_id: int,
        semester: int,
        academic_year_id: int,
        section_id: int | None = None,
        allow_create: bool = False
    ) -> List[models.CourseOffering]:
        with self.store.session_scope(ctx) as db:
            offerings = self.department_offerings(
                db, college_id, department_id, semester, academic_year_id,
                section_id=section_id, allow_create=allow_create
            )
            db.commit()
            return offerings

    def courses_by_semester(
        self,
        ctx: RequestContext,
        college_id: int,
        department_id: int,
        academic_year_id: int | None = None
    ) -> dict:
        """
        All core-course offerings of a department in a year, keyed by
        semester. Defaults to the college's newest active year.
        """
        with self.store.session_scope(ctx) as db:
            crud.get_department(db, department_id)
            if academic_year_id is None:
                active = crud.get_active_academic_years(db, college_id)
                if not active:
                    raise exceptions.NoUsableAcademicYearError(
                        f"No active academic year found for college {college_id}"
                    )
                academic_year_id = active[0].id
            courses = crud.get_core_courses(db, college_id, department_id)
            offerings = crud.find_offerings(
                db, [c.id for c in courses], None, academic_year_id
            )
            grouped = {}
            for offering in offerings:
                grouped.setdefault(offering.semester, []).append(offering)
            return dict(sorted(grouped.items()))

    # --- Session-level helpers shared with the other components ---

    def department_offerings(
        self,
        db: Session,
        college_id: int,
        department_id: int,
        semester: int,
        academic_year_id: int,
        section_id: int | None = None,
        allow_create: bool = False
    ) -> List[models.CourseOffering]:
        """Offerings of every core course in the department; does not commit."""
        crud.get_department(db, department_id)
        courses = crud.get_core_courses(db, college_id, department_id)
        if not courses:
            return []

        offerings = crud.find_offerings(
            db, [c.id for c in courses], semester, academic_year_id, section_id
        )
        if offerings or not allow_create:
            return offerings

        for course in courses:
            self._find_or_create(
                db, course.id, semester, academic_year_id,
                section_id=section_id, allow_create=True
            )
        return crud.find_offerings(
            db, [c.id for c in courses], semester, academic_year_id, section_id
        )

    def _find_or_create(
        self,
        db: Session,
        course_id: int,
        semester: int,
        academic_year_id: int,
        section_id: int | None = None,
        teacher_id: int | None = None,
        allow_create: bool = True
    ) -> models.CourseOffering:
        course = crud.get_course(db, course_id)
        crud.get_academic_year(db, academic_year_id)
        if teacher_id is not None:
            crud.get_teacher(db, teacher_id)

        existing = crud.find_offerings(db, [course.id], semester, academic_year_id, section_id)
        if existing:
            # prefer the section-less offering when no section was asked for
            offering = existing[0]
        elif not allow_create:
            raise exceptions.OfferingCreationNotPermittedError(
                f"No offering of {course.code} for semester {semester} "
                f"in academic year {academic_year_id}"
            )
        else:
            created = crud.insert_if_absent(
                db,
                models.CourseOffering,
                {
                    "course_id": course.id,
                    "semester": semester,
                    "academic_year_id": academic_year_id,
                    "section_id": section_id,
                    "section_key": section_id or 0,
                    "teacher_id": teacher_id,
                },
                ["course_id", "semester", "academic_year_id", "section_key"],
            )
            offering = db.query(models.CourseOffering).filter(
                models.CourseOffering.course_id == course.id,
                models.CourseOffering.semester == semester,
                models.CourseOffering.academic_year_id == academic_year_id,
                models.CourseOffering.section_key == (section_id or 0)
            ).one()
            if created:
                logger.info(
                    "Created offering %s for %s semester %s (academic year %s)",
                    offering.id, course.code, semester, academic_year_id
                )

        if teacher_id is not None and offering.teacher_id != teacher_id:
            logger.info("Assigning teacher %s to offering %s", teacher_id, offering.id)
            offering.teacher_id = teacher_id
            db.flush()
        return offering


def course_year(course: models.Course, offerings: List[models.CourseOffering] | None = None) -> int:
    """Year of study for a course: from its first offering, else from its code."""
    if offerings:
        return semester_to_year(offerings[0].semester)
    return year_from_course_code(course.code)
