from datetime import date
from typing import List

from sqlalchemy.orm import Session, joinedload

from academics import crud, models, schemas, exceptions
from academics.core import config
from academics.core.context import RequestContext
from academics.db import Store
from academics.logger import get_logger

logger = get_logger(__name__)


def attendance_percentage(present: int, total: int) -> float:
    if not total:
        return 0.0
    return round(present / total * 100, 1)


class AttendanceLedger:
    """
    Sessions and the per-student records under them.

    A session is keyed by (offering, teacher, date, period) and a record by
    (session, student); both are only ever written through conditional
    inserts on those keys. An "unmarked" student simply has no record.
    """

    def __init__(self, store: Store):
        self.store = store

    # --- Sessions ---

    def create_session(
        self,
        ctx: RequestContext,
        offering_id: int,
        teacher_id: int,
        class_date: date,
        period_number: int = config.DEFAULT_PERIOD_NUMBER,
        eager_fill_enrolled: bool = True,
        syllabus_covered: str = "",
        status: models.SessionStatus = models.SessionStatus.confirmed
    ) -> models.AttendanceSession:
        """
        Explicitly creates a class session. With `eager_fill_enrolled` every
        student enrolled at that moment gets an `absent` record.
        Raises ConflictError if the session already exists.
        """
        with self.store.session_scope(ctx) as db:
            crud.get_offering(db, offering_id)
            crud.get_teacher(db, teacher_id)

            created = self._insert_session(
                db, offering_id, teacher_id, class_date, period_number,
                status=status, syllabus_covered=syllabus_covered
            )
            if not created:
                raise exceptions.ConflictError(
                    f"Session for offering {offering_id} on {class_date} "
                    f"period {period_number} already exists"
                )
            db.commit()
            session = crud.find_session(db, offering_id, teacher_id, class_date, period_number)
            logger.info(
                "Created session %s for offering %s on %s period %s",
                session.id, offering_id, class_date, period_number
            )

            if eager_fill_enrolled:
                filled = 0
                for enrollment in crud.get_enrollments_for_offering(db, offering_id):
                    if crud.insert_if_absent(
                        db,
                        models.AttendanceRecord,
                        {
                            "session_id": session.id,
                            "student_id": enrollment.student_id,
                            "status": models.AttendanceStatus.absent,
                        },
                        ["session_id", "student_id"],
                    ):
                        filled += 1
                    db.commit()
                logger.debug("Session %s pre-filled with %d absent records", session.id, filled)

            return self._load_session(db, session.id)

    def update_session(
        self,
        ctx: RequestContext,
        session_id: int,
        status: models.SessionStatus | None = None,
        syllabus_covered: str | None = None
    ) -> models.AttendanceSession:
        with self.store.session_scope(ctx) as db:
            session = crud.get_session(db, session_id)
            if status is not None:
                session.status = status
            if syllabus_covered is not None:
                session.syllabus_covered = syllabus_covered
            db.commit()
            return self._load_session(db, session.id)

    def session_with_records(self, ctx: RequestContext, session_id: int) -> models.AttendanceSession:
        with self.store.session_scope(ctx) as db:
            return self._load_session(db, session_id)

    # --- Records ---

    def set_attendance(
        self,
        ctx: RequestContext,
        offering_id: int,
        teacher_id: int,
        class_date: date,
        period_number: int,
        student_id: int,
        status: schemas.AttendanceMark
    ) -> models.AttendanceRecord | None:
        """
        Marks one student. `unmarked` deletes the record and returns None;
        any other status creates or updates it, creating the session too if
        this is the first mark for the class.
        """
        status = schemas.AttendanceMark(status)
        with self.store.session_scope(ctx) as db:
            crud.get_offering(db, offering_id)
            student = crud.get_student(db, student_id)
            self._require_enrollment(db, student, offering_id)

            session = crud.find_session(db, offering_id, teacher_id, class_date, period_number)

            if status == schemas.AttendanceMark.unmarked:
                if session is not None:
                    self._unmark(db, session.id, student.id)
                    db.commit()
                return None

            if session is None:
                crud.get_teacher(db, teacher_id)
                self._insert_session(db, offering_id, teacher_id, class_date, period_number)
                session = crud.find_session(db, offering_id, teacher_id, class_date, period_number)

            self._mark(db, session.id, student.id, models.AttendanceStatus(status.value))
            db.commit()
            return db.query(models.AttendanceRecord).populate_existing().filter(
                models.AttendanceRecord.session_id == session.id,
                models.AttendanceRecord.student_id == student.id
            ).one()

    def record_class_attendance(
        self,
        ctx: RequestContext,
        offering_id: int,
        teacher_id: int,
        class_date: date,
        period_number: int,
        entries: List[schemas.AttendanceEntry],
        syllabus_covered: str = ""
    ) -> schemas.ClassAttendanceResult:
        """
        Whole-class submission from the teacher: the session is flagged
        `held` and every entry is written. All students must be enrolled in
        the offering, and the submission may not be empty; nothing is
        written otherwise.
        """
        if not entries:
            raise exceptions.InvalidRequestError(
                f"No attendance entries submitted for offering {offering_id} on {class_date}"
            )
        with self.store.session_scope(ctx) as db:
            crud.get_offering(db, offering_id)
            crud.get_teacher(db, teacher_id)

            enrolled = {e.student_id for e in crud.get_enrollments_for_offering(db, offering_id)}
            for entry in entries:
                if entry.student_id not in enrolled:
                    raise exceptions.EnrollmentNotFoundError(
                        detail=f"Student {entry.student_id} is not enrolled in offering {offering_id}"
                    )

            self._insert_session(
                db, offering_id, teacher_id, class_date, period_number,
                status=models.SessionStatus.held, syllabus_covered=syllabus_covered
            )
            session = crud.find_session(db, offering_id, teacher_id, class_date, period_number)
            session.status = models.SessionStatus.held
            if syllabus_covered:
                session.syllabus_covered = syllabus_covered
            db.flush()

            result = schemas.ClassAttendanceResult(
                session_id=session.id, records_count=0, present_count=0, absent_count=0
            )
            for entry in entries:
                if entry.status == schemas.AttendanceMark.unmarked:
                    self._unmark(db, session.id, entry.student_id)
                    continue
                self._mark(db, session.id, entry.student_id, models.AttendanceStatus(entry.status.value))
                result.records_count += 1
                if entry.status == schemas.AttendanceMark.present:
                    result.present_count += 1
                else:
                    result.absent_count += 1
            db.commit()

            logger.info(
                "Recorded attendance for session %s: %d present, %d absent",
                session.id, result.present_count, result.absent_count
            )
            return result

    # --- Statistics (held sessions only) ---

    def course_statistics(
        self, ctx: RequestContext, offering_id: int, teacher_id: int | None = None
    ) -> schemas.CourseStatistics:
        with self.store.session_scope(ctx) as db:
            crud.get_offering(db, offering_id)
            sessions = crud.get_held_sessions(db, offering_id, teacher_id)
            records = [r for s in sessions for r in s.records]
            present = sum(1 for r in records if r.status == models.AttendanceStatus.present)
            return schemas.CourseStatistics(
                offering_id=offering_id,
                classes_completed=len(sessions),
                total_classes=len(sessions),
                overall_attendance_percentage=attendance_percentage(present, len(records))
            )

    def student_attendance(
        self, ctx: RequestContext, offering_id: int
    ) -> List[schemas.StudentAttendanceSummary]:
        """Per-student attendance for an offering, lowest percentage first."""
        with self.store.session_scope(ctx) as db:
            crud.get_offering(db, offering_id)
            enrollments = crud.get_enrollments_for_offering(db, offering_id)
            sessions = crud.get_held_sessions(db, offering_id)

            tallies = {e.student_id: [0, 0] for e in enrollments}
            for session in sessions:
                for record in session.records:
                    if record.student_id not in tallies:
                        continue
                    if record.status == models.AttendanceStatus.present:
                        tallies[record.student_id][0] += 1
                    else:
                        tallies[record.student_id][1] += 1

            summaries = []
            for enrollment in enrollments:
                present, absent = tallies[enrollment.student_id]
                total = present + absent
                percentage = attendance_percentage(present, total)
                summaries.append(schemas.StudentAttendanceSummary(
                    student=schemas.StudentOut.model_validate(enrollment.student),
                    total_classes=total,
                    present_count=present,
                    absent_count=absent,
                    attendance_percentage=percentage,
                    low_attendance=total > 0 and percentage < config.LOW_ATTENDANCE_THRESHOLD
                ))
            summaries.sort(key=lambda s: s.attendance_percentage)
            return summaries

    # --- Helpers ---

    def _require_enrollment(self, db: Session, student: models.Student, offering_id: int) -> None:
        if crud.get_enrollment_for_pair(db, student.id, offering_id) is None:
            raise exceptions.EnrollmentNotFoundError(
                detail=f"Student {student.usn} is not enrolled in offering {offering_id}"
            )

    def _insert_session(
        self,
        db: Session,
        offering_id: int,
        teacher_id: int,
        class_date: date,
        period_number: int,
        status: models.SessionStatus = models.SessionStatus.confirmed,
        syllabus_covered: str = ""
    ) -> bool:
        return crud.insert_if_absent(
            db,
            models.AttendanceSession,
            {
                "offering_id": offering_id,
                "teacher_id": teacher_id,
                "class_date": class_date,
                "period_number": period_number,
                "status": status,
                "syllabus_covered": syllabus_covered,
            },
            ["offering_id", "class_date", "period_number", "teacher_id"],
        )

    def _mark(self, db: Session, session_id: int, student_id: int, status: models.AttendanceStatus) -> None:
        insert = crud.dialect_insert(db)
        statement = insert(models.AttendanceRecord.__table__).values(
            session_id=session_id, student_id=student_id, status=status
        )
        statement = statement.on_conflict_do_update(
            index_elements=["session_id", "student_id"],
            set_={"status": statement.excluded.status}
        )
        db.execute(statement)

    def _unmark(self, db: Session, session_id: int, student_id: int) -> None:
        deleted = db.query(models.AttendanceRecord).filter(
            models.AttendanceRecord.session_id == session_id,
            models.AttendanceRecord.student_id == student_id
        ).delete(synchronize_session=False)
        if deleted:
            logger.debug("Unmarked student %s in session %s", student_id, session_id)

    def _load_session(self, db: Session, session_id: int) -> models.AttendanceSession:
        session = db.query(models.AttendanceSession).populate_existing().options(
            joinedload(models.AttendanceSession.records)
        ).filter(models.AttendanceSession.id == session_id).first()
        if not session:
            raise exceptions.SessionNotFoundError(session_id)
        return session
