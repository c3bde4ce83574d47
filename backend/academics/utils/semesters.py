import math
import re
from datetime import date

from academics.core import config

# 2-4 uppercase letters, year-of-study digit 1-4, then 2-3 digits: CS301, MATH1101
COURSE_CODE_PATTERN = re.compile(r"^[A-Z]{2,4}([1-4])[0-9]{2,3}$")
YEAR_LABEL_PATTERN = re.compile(r"^\d{4}-\d{2}$")


def semester_to_year(semester: int) -> int:
    """Semesters 1,2 -> year 1; 3,4 -> 2; 5,6 -> 3; 7,8 -> 4."""
    return math.ceil(semester / 2)


def year_from_course_code(code: str | None) -> int:
    """Year of study embedded in a course code; unknown shapes default to year 1."""
    if not code:
        return 1
    match = COURSE_CODE_PATTERN.match(code)
    if not match:
        return 1
    return int(match.group(1))


def academic_year_label(start_year: int) -> str:
    return f"{start_year}-{str(start_year + 1)[-2:]}"


def academic_year_dates(start_year: int) -> tuple[date, date]:
    start_month, start_day = config.ACADEMIC_YEAR_START
    end_month, end_day = config.ACADEMIC_YEAR_END
    return (
        date(start_year, start_month, start_day),
        date(start_year + 1, end_month, end_day),
    )


def is_year_label(label: str | None) -> bool:
    return bool(label) and YEAR_LABEL_PATTERN.match(label) is not None
