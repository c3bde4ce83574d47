from datetime import date

from academics import exceptions, models
from academics.schemas import AttendanceEntry, AttendanceMark

from engine_fixtures import EngineTestCase

CLASS_DATE = date(2024, 9, 2)


class AttendanceTestCase(EngineTestCase):
    def setUp(self):
        super().setUp()
        year = self.make_year("2024-25")
        self.offering = self.make_offering(self.make_course("CS301"), 5, year, teacher=self.teacher)
        self.students = [self.make_student(f"4NM21CS00{i}", semester=5) for i in range(1, 6)]
        for student in self.students:
            self.enroll(student, self.offering)
        self.ledger = self.engine.attendance

    def mark(self, student, status, period=1, class_date=CLASS_DATE):
        return self.ledger.set_attendance(
            self.ctx, self.offering.id, self.teacher.id, class_date, period, student.id, status
        )


class CreateSessionTests(AttendanceTestCase):
    def test_eager_fill_creates_one_absent_record_per_enrolled_student(self):
        session = self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE)

        self.assertEqual(len(session.records), 5)
        self.assertTrue(all(r.status == models.AttendanceStatus.absent for r in session.records))
        self.assertEqual(session.status, models.SessionStatus.confirmed)

    def test_session_without_eager_fill_is_empty(self):
        session = self.ledger.create_session(
            self.ctx, self.offering.id, self.teacher.id, CLASS_DATE, eager_fill_enrolled=False
        )
        self.assertEqual(session.records, [])

    def test_duplicate_session_is_a_conflict(self):
        self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE)
        with self.assertRaises(exceptions.ConflictError):
            self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE)

        # another period on the same day is a different session
        self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE, period_number=2)
        self.assertEqual(self.count(models.AttendanceSession), 2)

    def test_update_session(self):
        session = self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE)
        updated = self.ledger.update_session(
            self.ctx, session.id, status=models.SessionStatus.held, syllabus_covered="Unit 1"
        )
        self.assertEqual(updated.status, models.SessionStatus.held)
        self.assertEqual(updated.syllabus_covered, "Unit 1")

        with self.assertRaises(exceptions.SessionNotFoundError):
            self.ledger.session_with_records(self.ctx, 999)


class SetAttendanceTests(AttendanceTestCase):
    def test_first_mark_creates_session_and_record(self):
        record = self.mark(self.students[0], AttendanceMark.present)

        self.assertEqual(record.status, models.AttendanceStatus.present)
        session = self.ledger.session_with_records(self.ctx, record.session_id)
        self.assertEqual(session.status, models.SessionStatus.confirmed)
        self.assertEqual(len(session.records), 1)

    def test_remarking_updates_in_place(self):
        first = self.mark(self.students[0], AttendanceMark.present)
        second = self.mark(self.students[0], AttendanceMark.absent)

        self.assertEqual(first.id, second.id)
        self.assertEqual(second.status, models.AttendanceStatus.absent)
        self.assertEqual(self.count(models.AttendanceRecord), 1)

    def test_unmarked_removes_the_record(self):
        record = self.mark(self.students[0], AttendanceMark.present)

        self.assertIsNone(self.mark(self.students[0], AttendanceMark.unmarked))
        self.assertEqual(self.count(models.AttendanceRecord), 0)
        self.assertEqual(self.ledger.session_with_records(self.ctx, record.session_id).records, [])

    def test_unmarked_without_session_creates_nothing(self):
        self.assertIsNone(self.mark(self.students[0], AttendanceMark.unmarked))
        self.assertEqual(self.count(models.AttendanceSession), 0)

    def test_marking_after_eager_fill_keeps_one_record_per_student(self):
        self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE)
        self.mark(self.students[0], AttendanceMark.present)

        self.assertEqual(self.count(models.AttendanceRecord), 5)
        self.assertEqual(self.count(
            models.AttendanceRecord, models.AttendanceRecord.status == models.AttendanceStatus.present
        ), 1)

    def test_plain_string_status_is_accepted(self):
        record = self.mark(self.students[0], "present")
        self.assertEqual(record.status, models.AttendanceStatus.present)
        self.assertIsNone(self.mark(self.students[0], "unmarked"))
        self.assertEqual(self.count(models.AttendanceRecord), 0)

        with self.assertRaises(ValueError):
            self.mark(self.students[0], "late")

    def test_student_must_be_enrolled(self):
        outsider = self.make_student("4NM21CS099", semester=5)
        with self.assertRaises(exceptions.EnrollmentNotFoundError):
            self.mark(outsider, AttendanceMark.present)


class ClassAttendanceTests(AttendanceTestCase):
    def submit(self, statuses, class_date=CLASS_DATE):
        entries = [
            AttendanceEntry(student_id=student.id, status=status)
            for student, status in zip(self.students, statuses)
        ]
        return self.ledger.record_class_attendance(
            self.ctx, self.offering.id, self.teacher.id, class_date, 1, entries, syllabus_covered="Unit 1"
        )

    def test_submission_marks_session_held(self):
        present, absent = AttendanceMark.present, AttendanceMark.absent
        result = self.submit([present, present, absent, present, absent])

        self.assertEqual((result.records_count, result.present_count, result.absent_count), (5, 3, 2))
        session = self.ledger.session_with_records(self.ctx, result.session_id)
        self.assertEqual(session.status, models.SessionStatus.held)
        self.assertEqual(session.syllabus_covered, "Unit 1")

    def test_resubmission_overwrites(self):
        present, absent = AttendanceMark.present, AttendanceMark.absent
        first = self.submit([absent] * 5)
        second = self.submit([present] * 5)

        self.assertEqual(first.session_id, second.session_id)
        self.assertEqual(self.count(models.AttendanceRecord), 5)
        self.assertEqual(self.count(
            models.AttendanceRecord, models.AttendanceRecord.status == models.AttendanceStatus.present
        ), 5)

    def test_empty_submission_is_rejected(self):
        with self.assertRaises(exceptions.InvalidRequestError):
            self.ledger.record_class_attendance(
                self.ctx, self.offering.id, self.teacher.id, CLASS_DATE, 1, []
            )
        self.assertEqual(self.count(models.AttendanceSession), 0)

        # an existing session keeps its status
        session = self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, CLASS_DATE)
        with self.assertRaises(exceptions.InvalidRequestError):
            self.ledger.record_class_attendance(
                self.ctx, self.offering.id, self.teacher.id, CLASS_DATE, 1, []
            )
        self.assertEqual(
            self.ledger.session_with_records(self.ctx, session.id).status, models.SessionStatus.confirmed
        )
        self.assertEqual(self.ledger.course_statistics(self.ctx, self.offering.id).classes_completed, 0)

    def test_unenrolled_student_rejects_the_submission(self):
        outsider = self.make_student("4NM21CS099", semester=5)
        entries = [
            AttendanceEntry(student_id=self.students[0].id, status=AttendanceMark.present),
            AttendanceEntry(student_id=outsider.id, status=AttendanceMark.present),
        ]
        with self.assertRaises(exceptions.EnrollmentNotFoundError):
            self.ledger.record_class_attendance(
                self.ctx, self.offering.id, self.teacher.id, CLASS_DATE, 1, entries
            )
        self.assertEqual(self.count(models.AttendanceSession), 0)


class AttendanceStatisticsTests(AttendanceTestCase):
    def test_only_held_sessions_count(self):
        present, absent = AttendanceMark.present, AttendanceMark.absent
        entries = [
            AttendanceEntry(student_id=student.id, status=status)
            for student, status in zip(self.students, [present, present, present, absent, absent])
        ]
        self.ledger.record_class_attendance(
            self.ctx, self.offering.id, self.teacher.id, CLASS_DATE, 1, entries
        )
        # confirmed, not held: ignored by the statistics
        self.ledger.create_session(self.ctx, self.offering.id, self.teacher.id, date(2024, 9, 3))

        stats = self.ledger.course_statistics(self.ctx, self.offering.id)
        self.assertEqual(stats.classes_completed, 1)
        self.assertEqual(stats.total_classes, 1)
        self.assertEqual(stats.overall_attendance_percentage, 60.0)

        summaries = self.ledger.student_attendance(self.ctx, self.offering.id)
        self.assertEqual(len(summaries), 5)
        self.assertEqual(summaries[0].attendance_percentage, 0.0)
        self.assertTrue(summaries[0].low_attendance)
        self.assertEqual(summaries[-1].attendance_percentage, 100.0)
        self.assertFalse(summaries[-1].low_attendance)
        self.assertEqual(summaries[-1].total_classes, 1)

    def test_statistics_without_sessions(self):
        stats = self.ledger.course_statistics(self.ctx, self.offering.id)
        self.assertEqual((stats.classes_completed, stats.overall_attendance_percentage), (0, 0.0))
        self.assertFalse(any(s.low_attendance for s in self.ledger.student_attendance(self.ctx, self.offering.id)))
