"""SMS OTP Service — configuration loaded from environment."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, loaded from .env or environment variables.

    Secrets have empty defaults and must be supplied at deploy time.
    """

    # ── Firestore service account ─────────────────────────
    firebase_project_id: str = ""
    firebase_client_email: str = ""
    firebase_private_key: str = ""
    firestore_host: str = "firestore.googleapis.com"
    firestore_audience: str = "https://firestore.googleapis.com/"
    identity_collection: str = "users"
    token_refresh_margin_seconds: int = 300

    # ── Twilio SMS ────────────────────────────────────────
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_phone_number: str = ""
    twilio_base_url: str = "https://api.twilio.com/2010-04-01"

    # ── OTP ───────────────────────────────────────────────
    otp_ttl_minutes: int = 5

    # ── App ───────────────────────────────────────────────
    http_timeout_seconds: float = 10.0
    app_name: str = "SMS OTP Service"
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton settings instance
settings = Settings()
