import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bookings.db")

BUSINESS_NAME = os.getenv("BUSINESS_NAME", "OneStop Application Services")

# Frontend base URL for checkout redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:8080")

# Dodo Payments Configuration
DODO_PAYMENTS_API_KEY = os.getenv("DODO_PAYMENTS_API_KEY")
DODO_PAYMENTS_WEBHOOK_SECRET = os.getenv("DODO_PAYMENTS_WEBHOOK_SECRET")
# "test_mode" or "live_mode" - default to test for safety
DODO_PAYMENTS_ENVIRONMENT = os.getenv("DODO_PAYMENTS_ENVIRONMENT", "test_mode")
# One-off appointment deposit product
APPOINTMENT_PRODUCT_ID = os.getenv("APPOINTMENT_PRODUCT_ID", "")
# Monthly subscription product for rental listings
RENTAL_LISTING_PRODUCT_ID = os.getenv("RENTAL_LISTING_PRODUCT_ID", "")

# Checkout metadata limits (provider caps values at 500 chars and 50 keys)
METADATA_CHUNK_SIZE = int(os.getenv("METADATA_CHUNK_SIZE", "450"))
METADATA_MAX_KEYS = int(os.getenv("METADATA_MAX_KEYS", "50"))

# Maximum age of a signed webhook in seconds
WEBHOOK_TOLERANCE_SECONDS = int(os.getenv("WEBHOOK_TOLERANCE_SECONDS", "300"))

# Success page polling hints for the delayed-confirmation message
CONFIRMATION_POLL_INTERVAL_SECONDS = int(os.getenv("CONFIRMATION_POLL_INTERVAL_SECONDS", "3"))
CONFIRMATION_POLL_MAX_ATTEMPTS = int(os.getenv("CONFIRMATION_POLL_MAX_ATTEMPTS", "10"))

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv(
    "EMAIL_FROM_ADDRESS", "OneStop Application Services <onboarding@resend.dev>"
)
ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

# Twilio SMS Configuration
TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN")
TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER")

# WhatsApp Cloud API Configuration
WHATSAPP_ACCESS_TOKEN = os.getenv("WHATSAPP_ACCESS_TOKEN")
WHATSAPP_PHONE_NUMBER_ID = os.getenv("WHATSAPP_PHONE_NUMBER_ID")
ADMIN_WHATSAPP_NUMBER = os.getenv("ADMIN_WHATSAPP_NUMBER")

# Admin API - bearer token shared with the admin dashboard
ADMIN_API_TOKEN = os.getenv("ADMIN_API_TOKEN")

# Rate limiting (Redis is optional; memory-only windows when unset)
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
REDIS_URL = os.getenv("REDIS_URL")

# CORS - comma separated list of frontend origins
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", f"{FRONTEND_URL},http://localhost:5173").split(",")
