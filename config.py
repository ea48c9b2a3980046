"""
Configuration settings for the EduAudit grievance portal.
Supports both development and production environments via environment variables.
"""
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()

# ============================================================================
# Paths
# ============================================================================
BASE_DIR = Path(__file__).parent
LOG_FILE = os.getenv("LOG_FILE", str(BASE_DIR / "logs" / "app.log"))

# ============================================================================
# Database Configuration
# ============================================================================
# Default is a volatile in-memory SQLite database; nothing survives a restart.
_raw_url = os.getenv("DATABASE_URL", "sqlite://")
# SQLAlchemy 2 loads dialect "postgresql", not "postgres"; normalize Heroku-style URLs
if _raw_url.startswith("postgres://"):
    DATABASE_URL = "postgresql://" + _raw_url[len("postgres://"):]
else:
    DATABASE_URL = _raw_url
DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
DB_MAX_OVERFLOW = int(os.getenv("DB_MAX_OVERFLOW", "20"))

# ============================================================================
# Application Settings
# ============================================================================
APP_NAME = os.getenv("APP_NAME", "EduAudit Karnataka API")
APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")  # development, staging, production
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# ============================================================================
# Security Configuration
# ============================================================================
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "eduaudit_session")
SESSION_EXPIRE_HOURS = int(os.getenv("SESSION_EXPIRE_HOURS", "24"))
SESSION_COOKIE_SECURE = os.getenv(
    "SESSION_COOKIE_SECURE", "true" if ENVIRONMENT == "production" else "false"
).lower() == "true"

# CORS Settings - include your frontend origin (e.g. Vite default 5173)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5000,http://localhost:5173,http://127.0.0.1:5000,http://127.0.0.1:5173").split(",") if o.strip()]

# Trusted Hosts
TRUSTED_HOSTS = os.getenv("TRUSTED_HOSTS", "localhost,127.0.0.1").split(",")

# Rate Limiting
RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "120"))
RATE_LIMIT_PER_HOUR = int(os.getenv("RATE_LIMIT_PER_HOUR", "2000"))

# ============================================================================
# OpenAI Configuration
# ============================================================================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY") or os.getenv("VITE_OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))

# ============================================================================
# District Statistics
# ============================================================================
SEED_DISTRICT_STATS = os.getenv("SEED_DISTRICT_STATS", "true").lower() == "true"
SEEDED_DISTRICTS = [d.strip() for d in os.getenv(
    "SEEDED_DISTRICTS",
    "Bengaluru Urban,Mysuru,Dharwad,Ballari,Belagavi,"
    "Dakshina Kannada,Hassan,Kalaburagi,Mandya,Shivamogga"
).split(",") if d.strip()]

# ============================================================================
# Global Instances (initialized at startup)
# ============================================================================
# Database instance (initialized in app.py)
db: Optional[object] = None
