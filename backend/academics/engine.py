from academics.attendance import AttendanceLedger
from academics.calendar_resolver import CalendarResolver
from academics.db import Store
from academics.enrollment import EnrollmentDeduplicator
from academics.marks import MarksEngine
from academics.offering_matcher import OfferingMatcher


class RecordsEngine:
    """Wires the components together around one store."""

    def __init__(self, store: Store):
        self.store = store
        self.offerings = OfferingMatcher(store)
        self.calendar = CalendarResolver(store, self.offerings)
        self.enrollments = EnrollmentDeduplicator(store, self.calendar)
        self.attendance = AttendanceLedger(store)
        self.marks = MarksEngine(store)
