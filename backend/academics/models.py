from sqlalchemy import (
    Column, Integer, String, Enum as SQLAlchemyEnum, ForeignKey,
    Date, DateTime, Boolean, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship, declarative_base
import enum
from datetime import datetime

Base = declarative_base()

# --- ENUMS for consistent data types ---

class CourseType(str, enum.Enum):
    core = "core"
    department_elective = "department_elective"
    open_elective = "open_elective"

class SessionStatus(str, enum.Enum):
    held = "held"
    confirmed = "confirmed"
    cancelled = "cancelled"

class AttendanceStatus(str, enum.Enum):
    present = "present"
    absent = "absent"


# --- Institution Structure Models ---

class College(Base):
    __tablename__ = "colleges"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, unique=True, nullable=False)

    departments = relationship("Department", back_populates="college")
    academic_years = relationship("AcademicYear", back_populates="college")

class Department(Base):
    __tablename__ = "departments"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)

    college = relationship("College", back_populates="departments")
    sections = relationship("Section", back_populates="department")
    courses = relationship("Course", back_populates="department")

class Section(Base):
    __tablename__ = "sections"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)

    department = relationship("Department", back_populates="sections")

class Teacher(Base):
    __tablename__ = "teachers"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)

    offerings = relationship("CourseOffering", back_populates="teacher")

class Student(Base):
    """Students are created by admin workflows; the engine only promotes them."""
    __tablename__ = "students"
    id = Column(Integer, primary_key=True, index=True)
    usn = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=True)
    semester = Column(Integer, nullable=False, default=1)
    batch_year = Column(Integer, nullable=True)

    department = relationship("Department")
    section = relationship("Section")
    enrollments = relationship("StudentEnrollment", back_populates="student")


# --- Course Catalogue and Calendar Models ---

class Course(Base):
    __tablename__ = "courses"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    type = Column(SQLAlchemyEnum(CourseType), nullable=False, default=CourseType.core)

    has_theory_component = Column(Boolean, default=True)
    has_lab_component = Column(Boolean, default=False)

    department = relationship("Department", back_populates="courses")
    offerings = relationship("CourseOffering", back_populates="course")
    restrictions = relationship(
        "OpenElectiveRestriction",
        back_populates="course",
        cascade="all, delete-orphan"
    )

class OpenElectiveRestriction(Base):
    """Departments whose students may not take an open elective."""
    __tablename__ = "open_elective_restrictions"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    restricted_department_id = Column(Integer, ForeignKey("departments.id"), nullable=False)

    course = relationship("Course", back_populates="restrictions")
    restricted_department = relationship("Department")

    __table_args__ = (
        UniqueConstraint("course_id", "restricted_department_id", name="uq_restriction_course_department"),
    )

class AcademicYear(Base):
    __tablename__ = "academic_years"
    id = Column(Integer, primary_key=True, index=True)
    year_name = Column(String, nullable=False)  # "2024-25"
    college_id = Column(Integer, ForeignKey("colleges.id"), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    college = relationship("College", back_populates="academic_years")
    offerings = relationship("CourseOffering", back_populates="academic_year")

    __table_args__ = (
        UniqueConstraint("college_id", "year_name", name="uq_academic_year_college_name"),
    )

class CourseOffering(Base):
    __tablename__ = "course_offerings"
    id = Column(Integer, primary_key=True, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    semester = Column(Integer, nullable=False)
    academic_year_id = Column(Integer, ForeignKey("academic_years.id"), nullable=False)
    section_id = Column(Integer, ForeignKey("sections.id"), nullable=True)
    # section_id, or 0 for "no section"; NULLs would never collide in the unique key
    section_key = Column(Integer, nullable=False, default=0)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=True)

    course = relationship("Course", back_populates="offerings")
    academic_year = relationship("AcademicYear", back_populates="offerings")
    section = relationship("Section")
    teacher = relationship("Teacher", back_populates="offerings")
    enrollments = relationship("StudentEnrollment", back_populates="offering")
    sessions = relationship("AttendanceSession", back_populates="offering")

    __table_args__ = (
        UniqueConstraint(
            "course_id", "semester", "academic_year_id", "section_key",
            name="uq_offering_course_semester_year_section"
        ),
    )


# --- Enrollment, Attendance and Marks Models ---

class StudentEnrollment(Base):
    __tablename__ = "student_enrollments"
    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    offering_id = Column(Integer, ForeignKey("course_offerings.id"), nullable=False)
    academic_year_id = Column(Integer, ForeignKey("academic_years.id"), nullable=True)
    attempt_number = Column(Integer, nullable=False, default=1)
    enrolled_at = Column(DateTime, default=datetime.utcnow)

    student = relationship("Student", back_populates="enrollments")
    offering = relationship("CourseOffering", back_populates="enrollments")
    theory_marks = relationship("TheoryMarks", back_populates="enrollment", uselist=False)
    lab_marks = relationship("LabMarks", back_populates="enrollment", uselist=False)

    __table_args__ = (
        UniqueConstraint("student_id", "offering_id", name="uq_enrollment_student_offering"),
    )

class AttendanceSession(Base):
    """One dated, numbered class meeting of an offering."""
    __tablename__ = "attendance_sessions"
    id = Column(Integer, primary_key=True, index=True)
    offering_id = Column(Integer, ForeignKey("course_offerings.id"), nullable=False)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False)
    class_date = Column(Date, nullable=False)
    period_number = Column(Integer, nullable=False, default=1)
    status = Column(SQLAlchemyEnum(SessionStatus), nullable=False, default=SessionStatus.confirmed)
    syllabus_covered = Column(Text, nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow)

    offering = relationship("CourseOffering", back_populates="sessions")
    teacher = relationship("Teacher")
    records = relationship(
        "AttendanceRecord",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="AttendanceRecord.student_id"
    )

    __table_args__ = (
        UniqueConstraint(
            "offering_id", "class_date", "period_number", "teacher_id",
            name="uq_session_offering_date_period_teacher"
        ),
    )

class AttendanceRecord(Base):
    # No row means "unmarked"; there is no stored unmarked value
    __tablename__ = "attendance_records"
    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("attendance_sessions.id"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    status = Column(SQLAlchemyEnum(AttendanceStatus), nullable=False)

    session = relationship("AttendanceSession", back_populates="records")
    student = relationship("Student")

    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_record_session_student"),
    )

class TheoryMarks(Base):
    __tablename__ = "theory_marks"
    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("student_enrollments.id"), unique=True, nullable=False)

    mse1_marks = Column(Integer, nullable=True)
    mse2_marks = Column(Integer, nullable=True)
    mse3_marks = Column(Integer, nullable=True)
    task1_marks = Column(Integer, nullable=True)
    task2_marks = Column(Integer, nullable=True)
    task3_marks = Column(Integer, nullable=True)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)

    enrollment = relationship("StudentEnrollment", back_populates="theory_marks")

class LabMarks(Base):
    __tablename__ = "lab_marks"
    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("student_enrollments.id"), unique=True, nullable=False)

    record_marks = Column(Integer, nullable=True)
    continuous_evaluation_marks = Column(Integer, nullable=True)
    lab_mse_marks = Column(Integer, nullable=True)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)

    enrollment = relationship("StudentEnrollment", back_populates="lab_marks")
