from typing import List

from sqlalchemy.orm import Session

from academics import crud, models, schemas, exceptions
from academics.calendar_resolver import CalendarResolver
from academics.core import config
from academics.core.context import RequestContext
from academics.db import Store
from academics.logger import get_logger

logger = get_logger(__name__)


def check_eligibility(student: models.Student, course: models.Course) -> None:
    """Raises RestrictedDepartmentError when an open elective excludes the student's department."""
    if course.type != models.CourseType.open_elective:
        return
    if student.department_id in crud.restricted_department_ids(course):
        raise exceptions.RestrictedDepartmentError(course.code, student.department_id)


class EnrollmentDeduplicator:
    """
    The single path by which enrollments are created. Manual admin action,
    bulk import and semester promotion all land here, so a (student,
    offering) pair is enrolled at most once however often it is requested.
    """

    def __init__(self, store: Store, resolver: CalendarResolver):
        self.store = store
        self.resolver = resolver

    def enroll_student(
        self,
        ctx: RequestContext,
        student_id: int,
        offering_id: int,
        academic_year_id: int | None = None
    ) -> schemas.EnrollmentResult:
        """
        Returns `enrolled` or `already_enrolled`; never `error`. Failures
        (missing student or offering, restricted department) are raised as
        EngineError subclasses. Only enroll_batch reports per-item errors.
        """
        with self.store.session_scope(ctx) as db:
            offering = crud.get_offering(db, offering_id)
            result = self._enroll(db, student_id, offering, academic_year_id)
            db.commit()
            return result

    def enroll_batch(
        self,
        ctx: RequestContext,
        offering_id: int,
        student_ids: List[int],
        academic_year_id: int | None = None
    ) -> schemas.BatchEnrollmentResult:
        """
        Enrolls each student independently: every success is committed on its
        own, and a missing or restricted student only fails its own entry.
        """
        summary = schemas.BatchEnrollmentResult(offering_id=offering_id)
        with self.store.session_scope(ctx) as db:
            offering = crud.get_offering(db, offering_id)
            for student_id in student_ids:
                try:
                    result = self._enroll(db, student_id, offering, academic_year_id)
                    db.commit()
                except exceptions.EngineError as exc:
                    db.rollback()
                    result = schemas.EnrollmentResult(
                        student_id=student_id,
                        status=schemas.EnrollmentStatus.error,
                        detail=exc.detail,
                        error_code=exc.error_code
                    )
                summary.results.append(result)

        for result in summary.results:
            if result.status == schemas.EnrollmentStatus.enrolled:
                summary.enrolled += 1
            elif result.status == schemas.EnrollmentStatus.already_enrolled:
                summary.already_enrolled += 1
            else:
                summary.errors += 1

        logger.info(
            "Batch enrollment into offering %s: %d enrolled, %d already enrolled, %d errors",
            offering_id, summary.enrolled, summary.already_enrolled, summary.errors
        )
        return summary

    def _enroll(
        self,
        db: Session,
        student_id: int,
        offering: models.CourseOffering,
        academic_year_id: int | None
    ) -> schemas.EnrollmentResult:
        student = crud.get_student(db, student_id)
        check_eligibility(student, crud.get_course(db, offering.course_id))

        created = crud.insert_if_absent(
            db,
            models.StudentEnrollment,
            {
                "student_id": student.id,
                "offering_id": offering.id,
                "academic_year_id": academic_year_id or offering.academic_year_id,
                "attempt_number": 1,
            },
            ["student_id", "offering_id"],
        )
        enrollment = crud.get_enrollment_for_pair(db, student.id, offering.id)

        if created:
            logger.info("Enrolled student %s in offering %s", student.usn, offering.id)
            status = schemas.EnrollmentStatus.enrolled
            detail = None
        else:
            status = schemas.EnrollmentStatus.already_enrolled
            detail = f"Student {student.usn} is already enrolled in offering {offering.id}"
        return schemas.EnrollmentResult(
            student_id=student.id,
            status=status,
            enrollment_id=enrollment.id,
            detail=detail
        )

    # --- Semester-level flows ---

    def auto_enroll_for_semester(
        self, ctx: RequestContext, student_id: int, semester: int | None = None
    ) -> schemas.AutoEnrollmentResult:
        """Enrolls a student in every core offering of their department for a semester."""
        with self.store.session_scope(ctx) as db:
            student = crud.get_student(db, student_id)
            return self._auto_enroll(db, student, semester or student.semester or 1)

    def _auto_enroll(
        self, db: Session, student: models.Student, semester: int
    ) -> schemas.AutoEnrollmentResult:
        result = schemas.AutoEnrollmentResult(student_id=student.id, semester=semester)
        if not student.department_id:
            result.errors.append("Student is not assigned to a department")
            return result

        try:
            resolution = self.resolver.resolve(
                db, student.college_id, student.department_id, semester,
                section_id=student.section_id
            )
        except exceptions.EngineError as exc:
            result.errors.append(exc.detail)
            return result

        result.academic_year_id = resolution.academic_year.id
        for offering in resolution.offerings:
            try:
                outcome = self._enroll(db, student.id, offering, resolution.academic_year.id)
                db.commit()
            except exceptions.EngineError as exc:
                db.rollback()
                result.errors.append(f"{offering.course.code}: {exc.detail}")
                continue
            if outcome.status == schemas.EnrollmentStatus.enrolled:
                result.enrollments_created += 1
                result.offerings_enrolled.append(
                    f"{offering.course.code} - {offering.course.name} (Semester {offering.semester})"
                )
            else:
                result.already_enrolled += 1

        result.success = True
        return result

    def promote_student(self, ctx: RequestContext, student_id: int) -> schemas.PromotionResult:
        """
        Moves a student to the next semester and enrolls them there. The
        semester change is committed first and stays even if enrollment fails.
        """
        with self.store.session_scope(ctx) as db:
            student = crud.get_student(db, student_id)
            current = student.semester or 1
            if current >= config.MAX_SEMESTER:
                raise exceptions.ConflictError(
                    f"Student {student.usn} is already in the final semester ({current})"
                )
            student.semester = current + 1
            db.commit()
            logger.info("Promoted student %s from semester %s to %s", student.usn, current, student.semester)

            enrollment = self._auto_enroll(db, student, student.semester)
            if not enrollment.success:
                logger.warning(
                    "Student %s promoted but not enrolled: %s", student.usn, "; ".join(enrollment.errors)
                )
            return schemas.PromotionResult(
                student_id=student.id,
                previous_semester=current,
                new_semester=student.semester,
                enrollment=enrollment
            )

    # --- Read-side helpers ---

    def eligible_students(
        self, ctx: RequestContext, course_id: int, semester: int
    ) -> List[models.Student]:
        """Students who could be enrolled in the course this semester and are not yet."""
        with self.store.session_scope(ctx) as db:
            course = crud.get_course(db, course_id)
            query = db.query(models.Student).filter(
                models.Student.college_id == course.college_id,
                models.Student.semester == semester
            )
            if course.type == models.CourseType.open_elective:
                restricted = crud.restricted_department_ids(course)
                if restricted:
                    query = query.filter(models.Student.department_id.notin_(sorted(restricted)))
            elif course.department_id:
                query = query.filter(models.Student.department_id == course.department_id)

            already_enrolled = db.query(models.StudentEnrollment.student_id).join(
                models.CourseOffering
            ).filter(
                models.CourseOffering.course_id == course.id,
                models.CourseOffering.semester == semester
            )
            query = query.filter(models.Student.id.notin_(already_enrolled.scalar_subquery()))
            return query.order_by(models.Student.usn).all()

    def align_academic_year(self, ctx: RequestContext, offering_id: int) -> int:
        """Points every enrollment of an offering at the offering's academic year."""
        with self.store.session_scope(ctx) as db:
            offering = crud.get_offering(db, offering_id)
            changed = 0
            for enrollment in crud.get_enrollments_for_offering(db, offering.id):
                if enrollment.academic_year_id != offering.academic_year_id:
                    enrollment.academic_year_id = offering.academic_year_id
                    changed += 1
            db.commit()
            if changed:
                logger.info("Re-aligned %d enrollment(s) of offering %s", changed, offering.id)
            return changed
