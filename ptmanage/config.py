# ptmanage/config.py

CLIENTS_TAB = "Clients"
CLIENTS_HEADERS = [
    "client_id",
    "name",
    "email",
    "phone",
    "start_date",             # YYYY-MM-DD
    "expiry_date",            # YYYY-MM-DD
    "default_time_slot",      # HH:MM-HH:MM
    "total_fee",
    "paid_amount",
    "notes",
    "payment_plan",           # JSON object or ""
    "created_at_utc",
    "updated_at_utc",
]

SESSIONS_TAB = "Sessions"
SESSIONS_HEADERS = [
    "session_id",
    "client_id",
    "session_date",           # YYYY-MM-DD
    "session_time",           # HH:MM-HH:MM
    "status",                 # scheduled/completed/missed/cancelled
    "completed",              # legacy TRUE/FALSE
    "updated_at_utc",
]

STATUS_SCHEDULED = "scheduled"
STATUS_COMPLETED = "completed"
STATUS_MISSED = "missed"
STATUS_CANCELLED = "cancelled"
SESSION_STATUSES = [STATUS_SCHEDULED, STATUS_COMPLETED, STATUS_MISSED, STATUS_CANCELLED]
TERMINAL_STATUSES = {STATUS_COMPLETED, STATUS_CANCELLED}

PAYMENT_FREQUENCIES = ["weekly", "monthly"]

EXPIRING_SOON_DAYS = 7
RENEWAL_SESSIONS_LEFT = 2
DEFAULT_TIME_SLOT = "10:00-11:00"
TIMEZONE = "Asia/Kolkata"
CURRENCY = "₹"

WEEKDAY_HEADERS = ["S", "M", "T", "W", "T", "F", "S"]
