from datetime import datetime
from typing import List

import pytz
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, joinedload

from academics import models
from academics.core import config
from academics import exceptions

# --- Time ---

def now() -> datetime:
    return datetime.now(tz=pytz.timezone(config.TIMEZONE))


# --- Conditional writes ---

def dialect_insert(db: Session):
    """
    Returns the dialect-specific `insert` construct, which carries the
    ON CONFLICT clauses every find-or-create in the engine relies on.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        return sqlite.insert
    if dialect == "postgresql":
        return postgresql.insert
    raise NotImplementedError(f"Conditional writes are not supported on '{dialect}'")


def insert_if_absent(db: Session, model, values: dict, conflict_columns: List[str]) -> bool:
    """
    Inserts a row unless one already holds the same unique key.
    Returns True when this call created the row. Does not commit.
    """
    insert = dialect_insert(db)
    statement = (
        insert(model.__table__)
        .values(**values)
        .on_conflict_do_nothing(index_elements=conflict_columns)
    )
    result = db.execute(statement)
    return result.rowcount == 1


# --- Lookups ---

def get_student(db: Session, student_id: int) -> models.Student:
    student = db.get(models.Student, student_id)
    if not student:
        raise exceptions.StudentNotFoundError(student_id)
    return student

def get_course(db: Session, course_id: int) -> models.Course:
    course = db.query(models.Course).options(
        joinedload(models.Course.restrictions)
    ).filter(models.Course.id == course_id).first()
    if not course:
        raise exceptions.CourseNotFoundError(course_id)
    return course

def get_department(db: Session, department_id: int) -> models.Department:
    department = db.get(models.Department, department_id)
    if not department:
        raise exceptions.DepartmentNotFoundError(department_id)
    return department

def get_teacher(db: Session, teacher_id: int) -> models.Teacher:
    teacher = db.get(models.Teacher, teacher_id)
    if not teacher:
        raise exceptions.TeacherNotFoundError(teacher_id)
    return teacher

def get_academic_year(db: Session, academic_year_id: int) -> models.AcademicYear:
    academic_year = db.get(models.AcademicYear, academic_year_id)
    if not academic_year:
        raise exceptions.AcademicYearNotFoundError(academic_year_id)
    return academic_year

def get_offering(db: Session, offering_id: int) -> models.CourseOffering:
    offering = db.query(models.CourseOffering).options(
        joinedload(models.CourseOffering.course)
    ).filter(models.CourseOffering.id == offering_id).first()
    if not offering:
        raise exceptions.OfferingNotFoundError(offering_id)
    return offering

def get_enrollment(db: Session, enrollment_id: int) -> models.StudentEnrollment:
    enrollment = db.get(models.StudentEnrollment, enrollment_id)
    if not enrollment:
        raise exceptions.EnrollmentNotFoundError(enrollment_id)
    return enrollment

def get_session(db: Session, session_id: int) -> models.AttendanceSession:
    session = db.get(models.AttendanceSession, session_id)
    if not session:
        raise exceptions.SessionNotFoundError(session_id)
    return session


# --- Calendar queries ---

def get_active_academic_years(db: Session, college_id: int) -> List[models.AcademicYear]:
    """Active years for a college, newest label first."""
    return db.query(models.AcademicYear).filter(
        models.AcademicYear.college_id == college_id,
        models.AcademicYear.is_active.is_(True)
    ).order_by(models.AcademicYear.year_name.desc()).all()

def get_academic_year_by_name(db: Session, college_id: int, year_name: str) -> models.AcademicYear | None:
    return db.query(models.AcademicYear).filter(
        models.AcademicYear.college_id == college_id,
        models.AcademicYear.year_name == year_name
    ).first()


# --- Course and offering queries ---

def get_core_courses(db: Session, college_id: int, department_id: int) -> List[models.Course]:
    return db.query(models.Course).filter(
        models.Course.college_id == college_id,
        models.Course.department_id == department_id,
        models.Course.type == models.CourseType.core
    ).order_by(models.Course.code).all()

def find_offerings(
    db: Session,
    course_ids: List[int],
    semester: int | None,
    academic_year_id: int,
    section_id: int | None = None
) -> List[models.CourseOffering]:
    """Offerings for a set of courses; a section narrows the match only when given."""
    if not course_ids:
        return []
    query = db.query(models.CourseOffering).join(models.Course).options(
        joinedload(models.CourseOffering.course)
    ).filter(
        models.CourseOffering.course_id.in_(course_ids),
        models.CourseOffering.academic_year_id == academic_year_id
    )
    if semester is not None:
        query = query.filter(models.CourseOffering.semester == semester)
    if section_id is not None:
        query = query.filter(models.CourseOffering.section_id == section_id)
    return query.order_by(
        models.CourseOffering.semester,
        models.Course.code,
        models.CourseOffering.section_key
    ).all()

def restricted_department_ids(course: models.Course) -> set:
    return {r.restricted_department_id for r in course.restrictions}


# --- Enrollment queries ---

def get_enrollment_for_pair(db: Session, student_id: int, offering_id: int) -> models.StudentEnrollment | None:
    return db.query(models.StudentEnrollment).filter(
        models.StudentEnrollment.student_id == student_id,
        models.StudentEnrollment.offering_id == offering_id
    ).first()

def get_enrollments_for_offering(db: Session, offering_id: int) -> List[models.StudentEnrollment]:
    return db.query(models.StudentEnrollment).options(
        joinedload(models.StudentEnrollment.student)
    ).filter(
        models.StudentEnrollment.offering_id == offering_id
    ).order_by(models.StudentEnrollment.student_id).all()


# --- Attendance queries ---

def find_session(
    db: Session, offering_id: int, teacher_id: int, class_date, period_number: int
) -> models.AttendanceSession | None:
    return db.query(models.AttendanceSession).filter(
        models.AttendanceSession.offering_id == offering_id,
        models.AttendanceSession.teacher_id == teacher_id,
        models.AttendanceSession.class_date == class_date,
        models.AttendanceSession.period_number == period_number
    ).first()

def get_record(db: Session, session_id: int, student_id: int) -> models.AttendanceRecord | None:
    return db.query(models.AttendanceRecord).filter(
        models.AttendanceRecord.session_id == session_id,
        models.AttendanceRecord.student_id == student_id
    ).first()

def get_held_sessions(db: Session, offering_id: int, teacher_id: int | None = None) -> List[models.AttendanceSession]:
    query = db.query(models.AttendanceSession).options(
        joinedload(models.AttendanceSession.records)
    ).filter(
        models.AttendanceSession.offering_id == offering_id,
        models.AttendanceSession.status == models.SessionStatus.held
    )
    if teacher_id is not None:
        query = query.filter(models.AttendanceSession.teacher_id == teacher_id)
    return query.order_by(models.AttendanceSession.class_date).all()
