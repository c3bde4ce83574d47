from pydantic import BaseModel, Field
from enum import Enum
from datetime import date, datetime
from typing import Optional, List

# --- ENUMS (Consistent with models.py) ---

class CourseType(str, Enum):
    core = "core"
    department_elective = "department_elective"
    open_elective = "open_elective"

class SessionStatus(str, Enum):
    held = "held"
    confirmed = "confirmed"
    cancelled = "cancelled"

class AttendanceMark(str, Enum):
    """What a caller may ask for; 'unmarked' means "no record"."""
    present = "present"
    absent = "absent"
    unmarked = "unmarked"

class EnrollmentStatus(str, Enum):
    enrolled = "enrolled"
    already_enrolled = "already_enrolled"
    error = "error"


# --- 1. Calendar and Offering Schemas ---

class AcademicYearOut(BaseModel):
    id: int
    year_name: str
    college_id: int
    is_active: bool
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    class Config:
        from_attributes = True

class AcademicYearCreate(BaseModel):
    college_id: int
    start_year: int = Field(..., ge=2000, le=2100)
    activate: bool = True

class CourseOut(BaseModel):
    id: int
    code: str
    name: str
    type: CourseType
    department_id: Optional[int] = None
    has_theory_component: bool
    has_lab_component: bool
    class Config:
        from_attributes = True

class OfferingOut(BaseModel):
    id: int
    course_id: int
    semester: int
    academic_year_id: int
    section_id: Optional[int] = None
    teacher_id: Optional[int] = None
    course: Optional[CourseOut] = None
    class Config:
        from_attributes = True

class OfferingCreate(BaseModel):
    course_id: int
    semester: int = Field(..., ge=1, le=8)
    academic_year_id: int
    section_id: Optional[int] = None
    teacher_id: Optional[int] = None

class SemesterOfferingsOut(BaseModel):
    academic_year: AcademicYearOut
    semester: int
    offerings: List[OfferingOut]

class SemesterGroupOut(BaseModel):
    semester: int
    year_of_study: int
    offerings: List[OfferingOut]


# --- 2. Enrollment Schemas ---

class StudentOut(BaseModel):
    id: int
    usn: str
    name: str
    department_id: Optional[int] = None
    section_id: Optional[int] = None
    semester: int
    class Config:
        from_attributes = True

class EnrollStudentRequest(BaseModel):
    student_id: int
    offering_id: int
    academic_year_id: Optional[int] = None

class EnrollBatchRequest(BaseModel):
    offering_id: int
    student_ids: List[int]
    academic_year_id: Optional[int] = None

class EnrollmentResult(BaseModel):
    student_id: int
    status: EnrollmentStatus
    enrollment_id: Optional[int] = None
    detail: Optional[str] = None
    error_code: Optional[str] = None

class BatchEnrollmentResult(BaseModel):
    offering_id: int
    enrolled: int = 0
    already_enrolled: int = 0
    errors: int = 0
    results: List[EnrollmentResult] = []

class AutoEnrollmentResult(BaseModel):
    student_id: int
    semester: int
    success: bool = False
    academic_year_id: Optional[int] = None
    enrollments_created: int = 0
    already_enrolled: int = 0
    errors: List[str] = []
    offerings_enrolled: List[str] = []

class PromotionResult(BaseModel):
    student_id: int
    previous_semester: int
    new_semester: int
    enrollment: AutoEnrollmentResult


# --- 3. Attendance Schemas ---

class SessionKey(BaseModel):
    offering_id: int
    teacher_id: int
    class_date: date
    period_number: int = Field(1, ge=1)

class SessionCreate(SessionKey):
    eager_fill_enrolled: bool = True
    syllabus_covered: str = ""
    status: SessionStatus = SessionStatus.confirmed

class SessionUpdate(BaseModel):
    status: Optional[SessionStatus] = None
    syllabus_covered: Optional[str] = None

class SetAttendanceRequest(BaseModel):
    session: SessionKey
    student_id: int
    status: AttendanceMark

class AttendanceEntry(BaseModel):
    student_id: int
    status: AttendanceMark

class ClassAttendanceRequest(SessionKey):
    syllabus_covered: str = ""
    entries: List[AttendanceEntry]

class AttendanceRecordOut(BaseModel):
    id: int
    session_id: int
    student_id: int
    status: AttendanceMark
    class Config:
        from_attributes = True

class AttendanceSessionOut(BaseModel):
    id: int
    offering_id: int
    teacher_id: int
    class_date: date
    period_number: int
    status: SessionStatus
    syllabus_covered: str
    records: List[AttendanceRecordOut] = []
    class Config:
        from_attributes = True

class ClassAttendanceResult(BaseModel):
    session_id: int
    records_count: int
    present_count: int
    absent_count: int

class CourseStatistics(BaseModel):
    offering_id: int
    classes_completed: int
    total_classes: int
    overall_attendance_percentage: float

class StudentAttendanceSummary(BaseModel):
    student: StudentOut
    total_classes: int
    present_count: int
    absent_count: int
    attendance_percentage: float
    low_attendance: bool


# --- 4. Marks Schemas ---

class MarksUpdateRequest(BaseModel):
    """Partial update; only the fields actually sent are written."""
    mse1_marks: Optional[int] = None
    mse2_marks: Optional[int] = None
    mse3_marks: Optional[int] = None
    task1_marks: Optional[int] = None
    task2_marks: Optional[int] = None
    task3_marks: Optional[int] = None
    record_marks: Optional[int] = None
    continuous_evaluation_marks: Optional[int] = None
    lab_mse_marks: Optional[int] = None

class TheoryMarksOut(BaseModel):
    id: int
    enrollment_id: int
    mse1_marks: Optional[int] = None
    mse2_marks: Optional[int] = None
    mse3_marks: Optional[int] = None
    task1_marks: Optional[int] = None
    task2_marks: Optional[int] = None
    task3_marks: Optional[int] = None
    last_updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class LabMarksOut(BaseModel):
    id: int
    enrollment_id: int
    record_marks: Optional[int] = None
    continuous_evaluation_marks: Optional[int] = None
    lab_mse_marks: Optional[int] = None
    last_updated_at: Optional[datetime] = None
    class Config:
        from_attributes = True

class MarksOut(BaseModel):
    enrollment_id: int
    theory: Optional[TheoryMarksOut] = None
    lab: Optional[LabMarksOut] = None
    theory_total: int = 0
    lab_total: int = 0
    theory_passed: bool = False
    lab_passed: bool = False
    mse3_eligible: bool = True

class PassSummary(BaseModel):
    offering_id: int
    theory_rows: int
    theory_passed: int
    lab_rows: int
    lab_passed: int
    pass_rate: float


# response

class ErrorResponse(BaseModel):
    """A standardized schema for API error responses."""
    status_code: int
    detail: str
    error_code: Optional[str] = None # Optional machine-readable error code
