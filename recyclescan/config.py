import os

from dotenv import load_dotenv

load_dotenv()

# --- INFERENCE SERVICE ---

GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    f"{GEMINI_MODEL}:generateContent"
)

# --- RETRY POLICY ---

SCAN_MAX_ATTEMPTS = int(os.getenv("SCAN_MAX_ATTEMPTS", "5"))
SCAN_MIN_DELAY_S = float(os.getenv("SCAN_MIN_DELAY_S", "1.0"))

# httpx timeout for one attempt, not for the whole retry loop
REQUEST_TIMEOUT_S = float(os.getenv("REQUEST_TIMEOUT_S", "30"))

# --- HTTP SURFACE ---

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,null").split(",")
    if o.strip()
]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
