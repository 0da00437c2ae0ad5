# telehealth/core/config.py
import os

from dotenv import load_dotenv

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "telehealth")
MONGO_TIMEOUT_MS = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))

# Application tokens
SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

# Identity provider ID tokens
IDENTITY_VERIFY_KEY = os.getenv("IDENTITY_VERIFY_KEY", SECRET_KEY)
IDENTITY_ALGORITHMS = [a.strip() for a in os.getenv("IDENTITY_ALGORITHMS", "HS256").split(",") if a.strip()]
IDENTITY_AUDIENCE = os.getenv("IDENTITY_AUDIENCE") or None
IDENTITY_ISSUER = os.getenv("IDENTITY_ISSUER") or None

# Video consultations
VIDEO_APP_ID = os.getenv("VIDEO_APP_ID", "")
VIDEO_CREDENTIAL_TTL_SECONDS = int(os.getenv("VIDEO_CREDENTIAL_TTL_SECONDS", 60 * 60))
VIDEO_JOIN_WINDOW_MINUTES = int(os.getenv("VIDEO_JOIN_WINDOW_MINUTES", 30))

CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "UTC")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",") if o.strip()]
PORT = os.getenv("PORT", "8000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "logs/telehealth.log")
