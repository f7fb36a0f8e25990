from dotenv import load_dotenv
import os

# Load environment variables
load_dotenv()

# Google OAuth client
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET", "")
GOOGLE_REDIRECT_URI = os.getenv(
    "GOOGLE_REDIRECT_URI",
    "http://localhost:8000/api/v1/auth/callback"
)
TOKEN_COOKIE_NAME = "google_tokens"
TOKEN_COOKIE_MAX_AGE = 60 * 60  # 1 hour

# Gemini
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")

# Local JSON storage
DATA_DIR = os.getenv("FINMAIL_DATA_DIR", "data")
PROFILES_DIR = os.getenv("FINMAIL_PROFILES_DIR", os.path.join(DATA_DIR, "profiles"))

# Optional n8n workflow hook
N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL")

# MongoDB import target
MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017/bank_statements")
MONGODB_DATABASE = os.getenv("MONGODB_DATABASE", "bank_statements")
MONGODB_COLLECTION = os.getenv("MONGODB_COLLECTION", "email_data")

# Batch loop tuning (seconds)
MAX_RETRIES = int(os.getenv("FINMAIL_MAX_RETRIES", "3"))
RATE_LIMIT_BASE_DELAY = float(os.getenv("FINMAIL_RATE_LIMIT_BASE_DELAY", "10"))
RATE_LIMIT_MAX_DELAY = float(os.getenv("FINMAIL_RATE_LIMIT_MAX_DELAY", "60"))
UNAVAILABLE_BASE_DELAY = float(os.getenv("FINMAIL_UNAVAILABLE_BASE_DELAY", "5"))
UNAVAILABLE_MAX_DELAY = float(os.getenv("FINMAIL_UNAVAILABLE_MAX_DELAY", "30"))
INTER_BATCH_DELAY = float(os.getenv("FINMAIL_INTER_BATCH_DELAY", "2"))

DEFAULT_MAX_RESULTS = 20

# Gmail search expressions, keyed by the source tag stamped on every record
SEARCH_QUERIES = {
    "bank_statement": "subject:statement OR subject:bank",
    "transaction_alert": (
        "subject:(debited OR credited OR \"transaction alert\" OR UPI OR IMPS OR NEFT)"
    ),
    "credit_card": "subject:(\"credit card\") (statement OR payment OR spent)",
}
