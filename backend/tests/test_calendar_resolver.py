from datetime import date

from academics import exceptions, models

from engine_fixtures import EngineTestCase


class CalendarResolverTests(EngineTestCase):
    def setUp(self):
        super().setUp()
        self.course = self.make_course("CS301")
        self.resolver = self.engine.calendar

    def test_falls_back_to_oldest_active_year_with_offerings(self):
        oldest = self.make_year("2022-23")
        self.make_year("2023-24")
        self.make_year("2024-25")
        offering = self.make_offering(self.course, 5, oldest)

        resolution = self.resolver.resolve_offerings_for_semester(
            self.ctx, self.college.id, self.cse.id, 5
        )

        self.assertEqual(resolution.academic_year.id, oldest.id)
        self.assertEqual([o.id for o in resolution.offerings], [offering.id])
        # resolution never fabricates offerings in the empty years
        self.assertEqual(self.count(models.CourseOffering), 1)

    def test_newest_label_wins_when_several_years_have_offerings(self):
        older = self.make_year("2023-24")
        newer = self.make_year("2024-25")
        self.make_offering(self.course, 5, older)
        newest_offering = self.make_offering(self.course, 5, newer)

        resolution = self.resolver.resolve_offerings_for_semester(
            self.ctx, self.college.id, self.cse.id, 5
        )

        self.assertEqual(resolution.academic_year.id, newer.id)
        self.assertEqual([o.id for o in resolution.offerings], [newest_offering.id])

    def test_inactive_years_are_ignored(self):
        inactive = self.make_year("2024-25", active=False)
        self.make_year("2023-24")
        self.make_offering(self.course, 5, inactive)

        with self.assertRaises(exceptions.NoUsableAcademicYearError):
            self.resolver.resolve_offerings_for_semester(self.ctx, self.college.id, self.cse.id, 5)

    def test_no_active_year_fails(self):
        with self.assertRaises(exceptions.NoUsableAcademicYearError):
            self.resolver.resolve_offerings_for_semester(self.ctx, self.college.id, self.cse.id, 1)

    def test_active_years_without_offerings_fail(self):
        self.make_year("2023-24")
        self.make_year("2024-25")
        with self.assertRaises(exceptions.NoUsableAcademicYearError):
            self.resolver.resolve_offerings_for_semester(self.ctx, self.college.id, self.cse.id, 5)

    def test_explicit_year_is_used_as_is(self):
        inactive = self.make_year("2021-22", active=False)
        self.make_year("2024-25")
        offering = self.make_offering(self.course, 5, inactive)

        resolution = self.resolver.resolve_offerings_for_semester(
            self.ctx, self.college.id, self.cse.id, 5, academic_year_id=inactive.id
        )
        self.assertEqual(resolution.academic_year.id, inactive.id)
        self.assertEqual([o.id for o in resolution.offerings], [offering.id])

    def test_unknown_department(self):
        self.make_year("2024-25")
        with self.assertRaises(exceptions.DepartmentNotFoundError):
            self.resolver.resolve_offerings_for_semester(self.ctx, self.college.id, 999, 5)

    def test_non_standard_label_is_logged(self):
        year = self.make_year("AY2024")
        self.make_offering(self.course, 5, year)

        with self.assertLogs("academics.calendar_resolver", level="WARNING") as logs:
            resolution = self.resolver.resolve_offerings_for_semester(
                self.ctx, self.college.id, self.cse.id, 5
            )
        self.assertEqual(resolution.academic_year.id, year.id)
        self.assertIn("AY2024", logs.output[0])


class EnsureAcademicYearTests(EngineTestCase):
    def test_creates_year_once(self):
        first = self.engine.calendar.ensure_academic_year(self.ctx, self.college.id, 2024)
        second = self.engine.calendar.ensure_academic_year(self.ctx, self.college.id, 2024)

        self.assertEqual(first.id, second.id)
        self.assertEqual(first.year_name, "2024-25")
        self.assertEqual(first.start_date, date(2024, 6, 1))
        self.assertEqual(first.end_date, date(2025, 5, 31))
        self.assertTrue(first.is_active)
        self.assertEqual(self.count(models.AcademicYear), 1)

    def test_first_active_year(self):
        self.make_year("2023-24")
        newest = self.make_year("2024-25")
        self.assertEqual(self.engine.calendar.first_active_year(self.ctx, self.college.id).id, newest.id)
