import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored next to the app as campusprint.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "campusprint.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_ENV = os.getenv("APP_ENV", "Local")

    # Session cookie name for our auth token
    AUTH_COOKIE_NAME = "campusprint_session"

    # 60 minutes session lifetime
    SESSION_LIFETIME_SECONDS = 60 * 60

    # Inactivity timeout: 60 minutes
    IDLE_TIMEOUT_SECONDS = 60 * 60

    # Session/cookie security defaults
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Account lockout
    MAX_LOGIN_ATTEMPTS = 5
    LOCKOUT_MINUTES = 30
    ATTEMPT_WINDOW_MINUTES = 60

    # Simple IP rate limit for login endpoint
    LOGIN_RATE_WINDOW_SECONDS = 60      # window size
    LOGIN_RATE_MAX_REQUESTS = 15        # max login requests per IP per window

    # OTP requests per IP
    OTP_RATE_WINDOW_SECONDS = 60 * 60
    OTP_RATE_MAX_REQUESTS = 5

    # Password policy
    PASSWORD_MIN_LEN = 8
    PASSWORD_REQUIRE_SYMBOL = True
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

    # Email (SMTP)
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
    SMTP_FROM_EMAIL = os.getenv("SMTP_FROM_EMAIL")
    SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

    # Email OTP (login + password reset)
    OTP_LENGTH = int(os.getenv("OTP_LENGTH", "6"))
    OTP_TTL_SECONDS = int(os.getenv("OTP_TTL_SECONDS", "300"))  # 5 minutes
    OTP_MIN_INTERVAL_SECONDS = 60

    # Arithmetic CAPTCHA
    CAPTCHA_TTL_SECONDS = 5 * 60

    # Object storage for uploads
    S3_BUCKET = os.getenv("S3_BUCKET", "campusprint-uploads")
    S3_REGION = os.getenv("AWS_REGION", "ap-south-1")
    S3_URL_EXPIRY_SECONDS = 60 * 60
    MAX_UPLOAD_BYTES = 10 * 1024 * 1024

    # Storefront
    STORE_CURRENCY = os.getenv("STORE_CURRENCY", "INR")
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_SUCCESS_URL = os.getenv("STRIPE_SUCCESS_URL")
    STRIPE_CANCEL_URL = os.getenv("STRIPE_CANCEL_URL")

    # Basic app settings
    DEBUG = False
    MAX_CONTENT_LENGTH = 12 * 1024 * 1024


class TestConfig(Config):
    TESTING = True
    APP_ENV = "Ci"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SECRET_KEY = "test-secret"
    S3_BUCKET = "test-bucket"
    BCRYPT_ROUNDS = 4
    SMTP_HOST = None
    STRIPE_SECRET_KEY = "sk_test_dummy"
    STRIPE_WEBHOOK_SECRET = "whsec_test"
    STRIPE_SUCCESS_URL = "http://localhost/paid"
    STRIPE_CANCEL_URL = "http://localhost/cancelled"
