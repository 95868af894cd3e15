"""Configuration loaded from environment variables."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent

# Database
DATABASE_URL = os.getenv(
    "SMS_TABLES_DATABASE_URL", f"sqlite:///{(BASE_DIR / 'sms_tables.db').as_posix()}"
)

# Responses
ROW_LIMIT = int(os.getenv("SMS_ROW_LIMIT", "25"))
SHORT_DATETIME_FORMAT = os.getenv("SMS_SHORT_DATETIME_FORMAT", "%Y-%m-%dT%H:%M")

# Outbound gateway
SMS_GATEWAY_URL = os.getenv("SMS_GATEWAY_URL", "")
SMS_GATEWAY_TOKEN = os.getenv("SMS_GATEWAY_TOKEN", "")
SMS_GATEWAY_TIMEOUT = float(os.getenv("SMS_GATEWAY_TIMEOUT", "10"))
SMS_MAX_LENGTH = int(os.getenv("SMS_MAX_LENGTH", "1600"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
