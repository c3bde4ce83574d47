import os

from dotenv import load_dotenv

load_dotenv()

# ==========================================================
# DATABASE
# ==========================================================

# 'postgres://' URLs are rewritten by db.normalize_database_url
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./academics.db")

SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# ==========================================================
# LOGGING / TIME
# ==========================================================

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
TIMEZONE = os.getenv("ACADEMICS_TIMEZONE", "Asia/Kolkata")

# ==========================================================
# ACADEMIC RULES
# ==========================================================

# MSE3 may only be written while MSE1 + MSE2 stays below this
MSE3_ELIGIBILITY_CEILING = 20

# Flat pass mark applied to theory and lab totals alike
PASS_THRESHOLD = 30

LOW_ATTENDANCE_THRESHOLD = 75

DEFAULT_PERIOD_NUMBER = 1
MAX_SEMESTER = 8

# (month, day) boundaries of an academic year
ACADEMIC_YEAR_START = (6, 1)
ACADEMIC_YEAR_END = (5, 31)
