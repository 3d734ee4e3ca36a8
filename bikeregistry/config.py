import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bikeregistry.db")

# Cloudflare R2 Configuration
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "bicycle-registry")
# Public bucket domain (e.g. https://media.registronacionaldebicicletas.com)
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL")

# Dodo Payments Configuration
DODO_PAYMENTS_API_KEY = os.getenv("DODO_PAYMENTS_API_KEY")
DODO_PAYMENTS_WEBHOOK_SECRET = os.getenv("DODO_PAYMENTS_WEBHOOK_SECRET")
# "test_mode" or "live_mode" - default to test for safety
DODO_PAYMENTS_ENVIRONMENT = os.getenv("DODO_PAYMENTS_ENVIRONMENT", "test_mode")
# One subscription product per plan, created in the Dodo dashboard
DODO_PRODUCT_IDS = {
    "basic": os.getenv("DODO_PRODUCT_BASIC"),
    "standard": os.getenv("DODO_PRODUCT_STANDARD"),
    "family": os.getenv("DODO_PRODUCT_FAMILY"),
    "premium": os.getenv("DODO_PRODUCT_PREMIUM"),
}

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Frontend base URL for redirects and links in emails
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "Registro Nacional de Bicis <noreply@registronacionaldebicicletas.com>"
)
# Inbox that receives contact form messages
SUPPORT_EMAIL = os.getenv("SUPPORT_EMAIL", "soporteregistronacionalbicis@gmail.com")

# Rate limiting is ENABLED by default; set RATE_LIMIT_ENABLED=false only for development/testing
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
