from typing import Mapping

from sqlalchemy import case, func, null
from sqlalchemy.orm import Session

from academics import crud, models, schemas
from academics.core import config
from academics.core.context import RequestContext
from academics.db import Store
from academics.logger import get_logger

logger = get_logger(__name__)

THEORY_FIELDS = (
    "mse1_marks", "mse2_marks", "mse3_marks",
    "task1_marks", "task2_marks", "task3_marks",
)
LAB_FIELDS = ("record_marks", "continuous_evaluation_marks", "lab_mse_marks")


# --- Scoring rules ---

def mse3_eligible(mse1: int | None, mse2: int | None) -> bool:
    """MSE3 may only be taken while MSE1 + MSE2 stays under the ceiling."""
    return (mse1 or 0) + (mse2 or 0) < config.MSE3_ELIGIBILITY_CEILING

def theory_total(row: models.TheoryMarks | None) -> int:
    if row is None:
        return 0
    return sum(getattr(row, field) or 0 for field in THEORY_FIELDS)

def lab_total(row: models.LabMarks | None) -> int:
    if row is None:
        return 0
    return sum(getattr(row, field) or 0 for field in LAB_FIELDS)

def is_passing(total: int) -> bool:
    # flat threshold, independent of the course's maximum marks
    return total >= config.PASS_THRESHOLD


class MarksEngine:
    """
    Theory and lab marks, one row of each per enrollment.

    Writes are partial: only the fields present in the payload change. The
    MSE3 ceiling is evaluated against the merged row inside the upsert
    itself, so no caller (and no interleaving of callers) can persist an
    MSE3 score alongside MSE1 + MSE2 >= 20.
    """

    def __init__(self, store: Store):
        self.store = store

    def upsert_marks(
        self, ctx: RequestContext, enrollment_id: int, fields: Mapping[str, int | None]
    ) -> schemas.MarksOut:
        with self.store.session_scope(ctx) as db:
            enrollment = crud.get_enrollment(db, enrollment_id)

            theory = {k: v for k, v in fields.items() if k in THEORY_FIELDS}
            lab = {k: v for k, v in fields.items() if k in LAB_FIELDS}
            ignored = set(fields) - set(theory) - set(lab)
            if ignored:
                logger.warning("Ignoring unknown marks fields: %s", ", ".join(sorted(ignored)))

            if theory:
                self._upsert_theory(db, enrollment.id, theory)
            if lab:
                self._upsert_row(db, models.LabMarks, enrollment.id, lab)
            if theory or lab:
                db.commit()
                logger.info(
                    "Updated marks for enrollment %s (%s)",
                    enrollment.id, ", ".join(sorted(theory) + sorted(lab))
                )

            result = self._marks_out(db, enrollment.id)
            if theory.get("mse3_marks") is not None and result.theory.mse3_marks is None:
                logger.info(
                    "MSE3 cleared for enrollment %s: MSE1 + MSE2 reached %s",
                    enrollment.id, config.MSE3_ELIGIBILITY_CEILING
                )
            return result

    def get_marks(self, ctx: RequestContext, enrollment_id: int) -> schemas.MarksOut:
        with self.store.session_scope(ctx) as db:
            enrollment = crud.get_enrollment(db, enrollment_id)
            return self._marks_out(db, enrollment.id)

    def offering_pass_summary(self, ctx: RequestContext, offering_id: int) -> schemas.PassSummary:
        with self.store.session_scope(ctx) as db:
            crud.get_offering(db, offering_id)
            theory_rows = db.query(models.TheoryMarks).join(models.StudentEnrollment).filter(
                models.StudentEnrollment.offering_id == offering_id
            ).all()
            lab_rows = db.query(models.LabMarks).join(models.StudentEnrollment).filter(
                models.StudentEnrollment.offering_id == offering_id
            ).all()

            theory_passed = sum(1 for row in theory_rows if is_passing(theory_total(row)))
            lab_passed = sum(1 for row in lab_rows if is_passing(lab_total(row)))
            rows = len(theory_rows) + len(lab_rows)
            pass_rate = round((theory_passed + lab_passed) / rows * 100, 1) if rows else 0.0

            return schemas.PassSummary(
                offering_id=offering_id,
                theory_rows=len(theory_rows),
                theory_passed=theory_passed,
                lab_rows=len(lab_rows),
                lab_passed=lab_passed,
                pass_rate=pass_rate
            )

    # --- Writes ---

    def _upsert_theory(self, db: Session, enrollment_id: int, values: dict) -> None:
        values = dict(values)
        if not mse3_eligible(values.get("mse1_marks"), values.get("mse2_marks")):
            values["mse3_marks"] = None

        table = models.TheoryMarks.__table__
        insert = crud.dialect_insert(db)
        statement = insert(table).values(
            enrollment_id=enrollment_id, last_updated_at=crud.now(), **values
        )

        def merged(field):
            # incoming value when supplied, else what is already stored
            if field in values:
                return statement.excluded[field]
            return table.c[field]

        midterms = func.coalesce(merged("mse1_marks"), 0) + func.coalesce(merged("mse2_marks"), 0)
        updates = {field: statement.excluded[field] for field in values}
        updates["mse3_marks"] = case(
            (midterms >= config.MSE3_ELIGIBILITY_CEILING, null()),
            else_=merged("mse3_marks")
        )
        updates["last_updated_at"] = statement.excluded.last_updated_at

        db.execute(statement.on_conflict_do_update(index_elements=["enrollment_id"], set_=updates))

    def _upsert_row(self, db: Session, model, enrollment_id: int, values: dict) -> None:
        insert = crud.dialect_insert(db)
        statement = insert(model.__table__).values(
            enrollment_id=enrollment_id, last_updated_at=crud.now(), **values
        )
        updates = {field: statement.excluded[field] for field in values}
        updates["last_updated_at"] = statement.excluded.last_updated_at
        db.execute(statement.on_conflict_do_update(index_elements=["enrollment_id"], set_=updates))

    # --- Reads ---

    def _marks_out(self, db: Session, enrollment_id: int) -> schemas.MarksOut:
        theory = db.query(models.TheoryMarks).populate_existing().filter(
            models.TheoryMarks.enrollment_id == enrollment_id
        ).first()
        lab = db.query(models.LabMarks).populate_existing().filter(
            models.LabMarks.enrollment_id == enrollment_id
        ).first()

        result = schemas.MarksOut(
            enrollment_id=enrollment_id,
            theory_total=theory_total(theory),
            lab_total=lab_total(lab),
            theory_passed=theory is not None and is_passing(theory_total(theory)),
            lab_passed=lab is not None and is_passing(lab_total(lab)),
            mse3_eligible=theory is None or mse3_eligible(theory.mse1_marks, theory.mse2_marks)
        )
        if theory is not None:
            result.theory = schemas.TheoryMarksOut.model_validate(theory)
        if lab is not None:
            result.lab = schemas.LabMarksOut.model_validate(lab)
        return result
