import unittest

from academics import exceptions, models
from academics.marks import is_passing, lab_total, mse3_eligible, theory_total

from engine_fixtures import EngineTestCase


class ScoringRuleTests(unittest.TestCase):
    def test_mse3_eligibility_ceiling(self):
        self.assertTrue(mse3_eligible(9, 10))
        self.assertTrue(mse3_eligible(None, None))
        self.assertFalse(mse3_eligible(10, 10))
        self.assertFalse(mse3_eligible(20, None))

    def test_totals_treat_missing_scores_as_zero(self):
        theory = models.TheoryMarks(mse1_marks=10, mse2_marks=None, task1_marks=5, task3_marks=4)
        lab = models.LabMarks(record_marks=12, lab_mse_marks=20)
        self.assertEqual(theory_total(theory), 19)
        self.assertEqual(lab_total(lab), 32)
        self.assertEqual(theory_total(None), 0)

    def test_pass_threshold(self):
        self.assertTrue(is_passing(30))
        self.assertFalse(is_passing(29))


class MarksEngineTests(EngineTestCase):
    def setUp(self):
        super().setUp()
        year = self.make_year("2024-25")
        self.offering = self.make_offering(self.make_course("CS301", has_lab=True), 5, year)
        self.enrollment_id = self.enroll(self.make_student("4NM21CS001", semester=5), self.offering)
        self.marks = self.engine.marks

    def upsert(self, **fields):
        return self.marks.upsert_marks(self.ctx, self.enrollment_id, fields)

    def test_mse3_kept_below_ceiling(self):
        result = self.upsert(mse1_marks=9, mse2_marks=10, mse3_marks=15)
        self.assertEqual(result.theory.mse3_marks, 15)
        self.assertTrue(result.mse3_eligible)

    def test_mse3_dropped_when_supplied_with_high_midterms(self):
        result = self.upsert(mse1_marks=10, mse2_marks=10, mse3_marks=15)
        self.assertIsNone(result.theory.mse3_marks)
        self.assertFalse(result.mse3_eligible)

    def test_mse3_cleared_when_later_update_reaches_ceiling(self):
        self.upsert(mse1_marks=12, mse3_marks=15)
        result = self.upsert(mse2_marks=8)

        self.assertEqual(result.theory.mse1_marks, 12)
        self.assertEqual(result.theory.mse2_marks, 8)
        self.assertIsNone(result.theory.mse3_marks)

    def test_mse3_rejected_against_persisted_midterms(self):
        self.upsert(mse1_marks=15, mse2_marks=6)
        result = self.upsert(mse3_marks=18)
        self.assertIsNone(result.theory.mse3_marks)

    def test_mse3_accepted_after_midterm_correction(self):
        self.upsert(mse1_marks=15, mse2_marks=6)
        result = self.upsert(mse2_marks=2, mse3_marks=18)
        self.assertEqual(result.theory.mse3_marks, 18)

    def test_partial_update_merges(self):
        self.upsert(mse1_marks=8, task1_marks=5)
        result = self.upsert(task2_marks=4)

        self.assertEqual(result.theory.mse1_marks, 8)
        self.assertEqual(result.theory.task1_marks, 5)
        self.assertEqual(result.theory.task2_marks, 4)
        self.assertIsNotNone(result.theory.last_updated_at)
        self.assertIsNone(result.lab)
        self.assertEqual(self.count(models.TheoryMarks), 1)

    def test_explicit_null_clears_a_field(self):
        self.upsert(task1_marks=5)
        result = self.upsert(task1_marks=None)
        self.assertIsNone(result.theory.task1_marks)

    def test_lab_and_theory_in_one_request(self):
        result = self.upsert(
            mse1_marks=10, mse2_marks=8, task1_marks=5, task2_marks=5, task3_marks=4,
            record_marks=10, continuous_evaluation_marks=10, lab_mse_marks=5
        )
        self.assertEqual(result.theory_total, 32)
        self.assertTrue(result.theory_passed)
        self.assertEqual(result.lab_total, 25)
        self.assertFalse(result.lab_passed)
        self.assertEqual(self.count(models.LabMarks), 1)

    def test_empty_payload_writes_nothing(self):
        result = self.upsert()
        self.assertIsNone(result.theory)
        self.assertIsNone(result.lab)
        self.assertEqual(self.count(models.TheoryMarks), 0)

    def test_unknown_enrollment(self):
        with self.assertRaises(exceptions.EnrollmentNotFoundError):
            self.marks.upsert_marks(self.ctx, 999, {"mse1_marks": 5})
        with self.assertRaises(exceptions.EnrollmentNotFoundError):
            self.marks.get_marks(self.ctx, 999)

    def test_get_marks(self):
        self.upsert(record_marks=15, continuous_evaluation_marks=10, lab_mse_marks=8)
        result = self.marks.get_marks(self.ctx, self.enrollment_id)
        self.assertIsNone(result.theory)
        self.assertEqual(result.lab_total, 33)
        self.assertTrue(result.lab_passed)

    def test_offering_pass_summary(self):
        other = self.enroll(self.make_student("4NM21CS002", semester=5), self.offering)
        self.upsert(mse1_marks=10, mse2_marks=10, task1_marks=10)
        self.marks.upsert_marks(self.ctx, other, {"mse1_marks": 5, "record_marks": 30})

        summary = self.marks.offering_pass_summary(self.ctx, self.offering.id)
        self.assertEqual((summary.theory_rows, summary.theory_passed), (2, 1))
        self.assertEqual((summary.lab_rows, summary.lab_passed), (1, 1))
        self.assertEqual(summary.pass_rate, 66.7)
