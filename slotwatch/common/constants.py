"""Application constants."""

USER_AGENT = "slotwatch/0.3 (+appointment availability watcher)"

SLOTS_ENDPOINT = "https://ttp.cbp.dhs.gov/schedulerapi/slots/asLocations"
SERVICE_NAME = "Global Entry"
SLACK_POST_URL = "https://slack.com/api/chat.postMessage"

DATE_FORMAT = "%Y-%m-%d"
DEFAULT_CSV_PATH = "appointments.csv"
PHONE_PLACEHOLDER = "N/A"
SLACK_PREVIEW_LIMIT = 5

CSV_HEADERS = [
    "Date",
    "ID",
    "Name",
    "State",
    "City",
    "Address",
    "PostalCode",
    "Phone",
    "RawJSON",
]

EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "level",
    "run_id",
    "date",
    "event",
    "status",
    "attempt",
    "duration_ms",
    "items",
    "error_code",
    "message",
)
