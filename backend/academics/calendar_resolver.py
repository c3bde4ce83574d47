from typing import List, NamedTuple

from sqlalchemy.orm import Session

from academics import crud, models, exceptions
from academics.core.context import RequestContext
from academics.db import Store
from academics.logger import get_logger
from academics.offering_matcher import OfferingMatcher
from academics.utils.semesters import academic_year_dates, academic_year_label, is_year_label

logger = get_logger(__name__)


class Resolution(NamedTuple):
    academic_year: models.AcademicYear
    offerings: List[models.CourseOffering]


class CalendarResolver:
    """
    Picks the academic year to work in for a college and semester.

    Several years may be flagged active at once (leftovers from data
    migrations), so every active year is tried newest-label-first and the
    first one that actually has offerings for the semester wins.
    """

    def __init__(self, store: Store, matcher: OfferingMatcher):
        self.store = store
        self.matcher = matcher

    def resolve_offerings_for_semester(
        self,
        ctx: RequestContext,
        college_id: int,
        department_id: int,
        semester: int,
        academic_year_id: int | None = None,
        section_id: int | None = None
    ) -> Resolution:
        with self.store.session_scope(ctx) as db:
            return self.resolve(
                db, college_id, department_id, semester,
                academic_year_id=academic_year_id, section_id=section_id
            )

    def resolve(
        self,
        db: Session,
        college_id: int,
        department_id: int,
        semester: int,
        academic_year_id: int | None = None,
        section_id: int | None = None
    ) -> Resolution:
        if academic_year_id is not None:
            academic_year = crud.get_academic_year(db, academic_year_id)
            offerings = self.matcher.department_offerings(
                db, college_id, department_id, semester, academic_year.id, section_id=section_id
            )
            return Resolution(academic_year, offerings)

        crud.get_department(db, department_id)
        candidates = crud.get_active_academic_years(db, college_id)
        if not candidates:
            raise exceptions.NoUsableAcademicYearError(
                f"No active academic year found for college {college_id}"
            )

        for academic_year in candidates:
            if not is_year_label(academic_year.year_name):
                logger.warning(
                    "Academic year %s has label %r; recency ordering assumes 'YYYY-YY'",
                    academic_year.id, academic_year.year_name
                )
            offerings = self.matcher.department_offerings(
                db, college_id, department_id, semester, academic_year.id, section_id=section_id
            )
            logger.debug(
                "Academic year %s: %d offerings for semester %s",
                academic_year.year_name, len(offerings), semester
            )
            if offerings:
                return Resolution(academic_year, offerings)

        raise exceptions.NoUsableAcademicYearError(
            f"No course offerings for semester {semester} in department {department_id} "
            f"across {len(candidates)} active academic year(s)"
        )

    def first_active_year(self, ctx: RequestContext, college_id: int) -> models.AcademicYear:
        with self.store.session_scope(ctx) as db:
            candidates = crud.get_active_academic_years(db, college_id)
            if not candidates:
                raise exceptions.NoUsableAcademicYearError(
                    f"No active academic year found for college {college_id}"
                )
            return candidates[0]

    def ensure_academic_year(
        self, ctx: RequestContext, college_id: int, start_year: int, activate: bool = True
    ) -> models.AcademicYear:
        """Returns the college's 'YYYY-YY' year starting in `start_year`, creating it if needed."""
        year_name = academic_year_label(start_year)
        start_date, end_date = academic_year_dates(start_year)
        with self.store.session_scope(ctx) as db:
            created = crud.insert_if_absent(
                db,
                models.AcademicYear,
                {
                    "college_id": college_id,
                    "year_name": year_name,
                    "start_date": start_date,
                    "end_date": end_date,
                    "is_active": activate,
                },
                ["college_id", "year_name"],
            )
            db.commit()
            if created:
                logger.info("Created academic year %s for college %s", year_name, college_id)
            return crud.get_academic_year_by_name(db, college_id, year_name)
