import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./scorg_hr.db")

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ✅ HR workflow windows (days)
ONBOARDING_OVERDUE_DAYS = int(os.getenv("ONBOARDING_OVERDUE_DAYS", "30"))
APPLICATION_RECENT_DAYS = int(os.getenv("APPLICATION_RECENT_DAYS", "30"))
NEW_MEMBER_REVIEW_DAYS = int(os.getenv("NEW_MEMBER_REVIEW_DAYS", "90"))
REVIEW_CYCLE_DAYS = int(os.getenv("REVIEW_CYCLE_DAYS", "365"))
