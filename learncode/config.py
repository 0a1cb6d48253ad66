import os
from dotenv import load_dotenv

load_dotenv()

# --- External API ---
API_URL = os.getenv("LEARNCODE_API_URL", "http://localhost:3000").rstrip("/")
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))

# --- Session cookie ---
SESSION_SECRET = os.getenv("SESSION_SECRET", "change-this-secret-key")
SESSION_ALGORITHM = "HS256"
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "auth_token")
SESSION_COOKIE_DAYS = int(os.getenv("SESSION_COOKIE_DAYS", "7"))
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "true").lower() == "true"

# Where the session guard sends visitors without a valid credential
PUBLIC_ENTRY_ROUTE = "/"

# --- Submission polling (seconds) ---
RUN_POLL_INTERVAL = float(os.getenv("RUN_POLL_INTERVAL", "1.0"))
SUBMIT_POLL_INTERVAL = float(os.getenv("SUBMIT_POLL_INTERVAL", "2.0"))
POLL_MAX_ATTEMPTS = int(os.getenv("POLL_MAX_ATTEMPTS", "0"))  # 0 = no limit

# --- Server ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
