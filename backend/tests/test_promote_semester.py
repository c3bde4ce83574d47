from academics import models

from engine_fixtures import EngineTestCase
from promote_semester import promote_college


class PromoteCollegeTests(EngineTestCase):
    def test_promotes_everyone_below_the_final_semester(self):
        year = self.make_year("2024-25")
        self.make_offering(self.make_course("CS301"), 5, year)
        movers = [self.make_student("4NM21CS001", semester=4), self.make_student("4NM21CS002", semester=2)]
        graduate = self.make_student("4NM20CS001", semester=8)

        summary = promote_college(self.engine, self.ctx, self.college.id)

        self.assertEqual(summary["promoted"], 2)
        self.assertEqual(summary["enrollments_created"], 1)
        # semester 3 has no offerings in any active year
        self.assertEqual(summary["not_enrolled"], [movers[1].id])
        with self.store.session_scope(self.ctx) as db:
            self.assertEqual(db.get(models.Student, movers[0].id).semester, 5)
            self.assertEqual(db.get(models.Student, movers[1].id).semester, 3)
            self.assertEqual(db.get(models.Student, graduate.id).semester, 8)
