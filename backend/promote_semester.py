# promote_semester.py
import sys

from academics import models
from academics.core import config
from academics.core.context import RequestContext
from academics.db import Store
from academics.engine import RecordsEngine

USAGE = """Usage:
  python promote_semester.py promote <college_id>
  python promote_semester.py enroll <offering_id> <student_id> [<student_id> ...]"""


def promote_college(engine: RecordsEngine, ctx: RequestContext, college_id: int) -> dict:
    """Promotes every student of a college who is not yet in the final semester."""
    with engine.store.session_scope(ctx) as db:
        student_ids = [
            s.id for s in db.query(models.Student).filter(
                models.Student.college_id == college_id,
                models.Student.semester < config.MAX_SEMESTER
            ).order_by(models.Student.usn).all()
        ]

    summary = {"promoted": 0, "enrollments_created": 0, "not_enrolled": []}
    for student_id in student_ids:
        result = engine.enrollments.promote_student(ctx, student_id)
        summary["promoted"] += 1
        summary["enrollments_created"] += result.enrollment.enrollments_created
        if not result.enrollment.success:
            summary["not_enrolled"].append(student_id)
    return summary


def main(argv) -> int:
    if len(argv) < 2 or argv[0] not in ("promote", "enroll"):
        print(USAGE)
        return 2

    print("Connecting to the database...")
    store = Store()
    store.create_all()
    engine = RecordsEngine(store)
    ctx = RequestContext(path=f"script:{argv[0]}")

    try:
        if argv[0] == "promote":
            summary = promote_college(engine, ctx, int(argv[1]))
            print(f"Promoted {summary['promoted']} student(s), "
                  f"{summary['enrollments_created']} new enrollment(s).")
            if summary["not_enrolled"]:
                print(f"Promoted but not enrolled: {summary['not_enrolled']}")
        else:
            if len(argv) < 3:
                print(USAGE)
                return 2
            result = engine.enrollments.enroll_batch(ctx, int(argv[1]), [int(s) for s in argv[2:]])
            print(f"Enrolled: {result.enrolled}, already enrolled: {result.already_enrolled}, "
                  f"errors: {result.errors}")
            for item in result.results:
                if item.error_code:
                    print(f"  student {item.student_id}: {item.error_code} {item.detail}")
    finally:
        print(f"Done in {ctx.elapsed_ms():.0f}ms using {ctx.query_count} queries.")
        store.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
