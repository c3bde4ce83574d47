class EngineError(Exception):
    """Base class for outcomes the engine reports back to its caller."""
    error_code = "ENGINE_ERROR"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


# --- Lookups ---

class NotFoundError(EngineError):
    error_code = "NOT_FOUND"
    entity = "Record"

    def __init__(self, identifier=None, detail: str | None = None):
        self.identifier = identifier
        if detail is None:
            detail = f"{self.entity} not found" if identifier is None else f"{self.entity} {identifier} not found"
        super().__init__(detail)

class StudentNotFoundError(NotFoundError):
    error_code = "STUDENT_NOT_FOUND"
    entity = "Student"

class CourseNotFoundError(NotFoundError):
    error_code = "COURSE_NOT_FOUND"
    entity = "Course"

class DepartmentNotFoundError(NotFoundError):
    error_code = "DEPARTMENT_NOT_FOUND"
    entity = "Department"

class OfferingNotFoundError(NotFoundError):
    error_code = "OFFERING_NOT_FOUND"
    entity = "Course offering"

class TeacherNotFoundError(NotFoundError):
    error_code = "TEACHER_NOT_FOUND"
    entity = "Teacher"

class AcademicYearNotFoundError(NotFoundError):
    error_code = "ACADEMIC_YEAR_NOT_FOUND"
    entity = "Academic year"

class SessionNotFoundError(NotFoundError):
    error_code = "SESSION_NOT_FOUND"
    entity = "Attendance session"

class EnrollmentNotFoundError(NotFoundError):
    error_code = "ENROLLMENT_NOT_FOUND"
    entity = "Enrollment"


# --- Rule violations ---

class InvalidRequestError(EngineError):
    error_code = "INVALID_REQUEST"

class ConflictError(EngineError):
    error_code = "CONFLICT"

class RestrictedDepartmentError(EngineError):
    error_code = "RESTRICTED_DEPARTMENT"

    def __init__(self, course_code: str, department_id: int):
        self.course_code = course_code
        self.department_id = department_id
        super().__init__(
            f"Students of department {department_id} cannot enroll in open elective {course_code}"
        )

class NoUsableAcademicYearError(EngineError):
    error_code = "NO_USABLE_ACADEMIC_YEAR"

class OfferingCreationNotPermittedError(EngineError):
    error_code = "NO_OFFERING_AND_CREATION_NOT_PERMITTED"
