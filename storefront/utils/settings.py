# storefront/utils/settings.py
import os
from dotenv import load_dotenv

load_dotenv()

# "rest" talks to the hosted backend, "sql" uses a local database through SQLAlchemy
DATA_BACKEND = os.getenv("DATA_BACKEND", "rest").lower()

SUPABASE_URL = os.getenv("SUPABASE_URL", "http://localhost:54321").rstrip("/")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://redis:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://redis:6379/2")

PAYMENT_FUNCTION_URL = os.getenv("PAYMENT_FUNCTION_URL", f"{SUPABASE_URL}/functions/v1/payment")
PAYMENT_API_URL = os.getenv("PAYMENT_API_URL", "https://api.stripe.com").rstrip("/")
PAYMENT_PUBLISHABLE_KEY = os.getenv("PAYMENT_PUBLISHABLE_KEY", "")
PAYMENT_METHOD = os.getenv("PAYMENT_METHOD", "pm_card_visa")

HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", 10))

SHARED_ORDER_TTL_SECONDS = int(os.getenv("SHARED_ORDER_TTL_SECONDS", 24 * 60 * 60))
PROFILE_RETRY_ATTEMPTS = int(os.getenv("PROFILE_RETRY_ATTEMPTS", 3))
PROFILE_RETRY_DELAY_SECONDS = float(os.getenv("PROFILE_RETRY_DELAY_SECONDS", 1.0))
SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", 60 * 60))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
