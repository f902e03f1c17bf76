"""
Configuration management for the candidature service
"""

import os
from typing import List, Optional
from urllib.parse import quote

from dotenv import load_dotenv

from utils.logging_utils import get_logger

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)


def parse_origins(value: Optional[str]) -> List[str]:
    """Split a comma-separated origin list, dropping blanks"""
    if not value:
        return []
    return [origin.strip() for origin in value.split(",") if origin.strip()]


def parse_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration management for the candidature service"""

    def __init__(self):
        # Runtime
        self.app_env = self._get_env_var("APP_ENV", "development")
        self.port = int(self._get_env_var("PORT", "3003"))

        # Database Configuration
        self.database_url = self._get_env_var("DATABASE_URL")  # PostgreSQL connection string
        self.db_host = self._get_env_var("DB_HOST", "localhost")
        self.db_port = int(self._get_env_var("DB_PORT", "5432"))
        self.db_username = self._get_env_var("DB_USERNAME", "postgres")
        self.db_password = self._get_env_var("DB_PASSWORD", "")
        self.db_name = self._get_env_var("DB_NAME", "postgres")
        self.db_pool_min = int(self._get_env_var("DB_POOL_MIN", "1"))
        self.db_pool_max = int(self._get_env_var("DB_POOL_MAX", "10"))
        self.db_auto_create_schema = parse_bool(self._get_env_var("DB_AUTO_CREATE_SCHEMA"), False)

        # Use DATABASE_URL if available, otherwise build one from discrete settings
        self.db_connection_string = self.database_url or self._build_database_url()

        # AWS SES Configuration
        self.aws_region = self._get_env_var("AWS_REGION", "eu-west-3")
        self.ses_region = self._get_env_var("SES_REGION", self.aws_region)
        self.ses_from_email = self._get_env_var("SES_FROM_EMAIL")
        self.email_reply_to = self._get_env_var("EMAIL_REPLY_TO")
        self.email_bcc = self._get_env_var("EMAIL_BCC")
        self.email_workers = int(self._get_env_var("EMAIL_WORKERS", "2"))

        # HTTP plumbing
        self.cors_origins = parse_origins(self._get_env_var("CORS_ORIGINS"))
        self.rate_limit_max = int(self._get_env_var("RATE_LIMIT_MAX", "200"))
        self.rate_limit_window_seconds = int(self._get_env_var("RATE_LIMIT_WINDOW_SECONDS", "900"))
        self.trust_proxy = parse_bool(self._get_env_var("TRUST_PROXY"), False)

        # Validate required configuration
        self._validate_config()

    def _get_env_var(self, var_name: str, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable with optional default"""
        value = os.getenv(var_name, default)
        return value.strip() if value else default

    def _build_database_url(self) -> str:
        credentials = quote(self.db_username or "", safe="")
        if self.db_password:
            credentials += ":" + quote(self.db_password, safe="")
        return f"postgresql://{credentials}@{self.db_host}:{self.db_port}/{self.db_name}"

    def _validate_config(self):
        """Warn about settings the service can run without but probably should not"""
        if not self.database_url:
            logger.warning("⚠️ DATABASE_URL not set, using %s:%s/%s", self.db_host, self.db_port, self.db_name)
        if not self.ses_from_email:
            logger.warning("⚠️ SES_FROM_EMAIL not set, confirmation emails are disabled")
        if not self.cors_origins:
            logger.warning("⚠️ CORS_ORIGINS is empty, every browser origin will be rejected")

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def is_configured(self) -> bool:
        """Check if all required configuration is present"""
        return bool(self.db_connection_string and self.ses_from_email)

    def get_config_status(self) -> dict:
        """Get configuration status for debugging (never includes secrets)"""
        return {
            "app_env": self.app_env,
            "database_configured": bool(self.database_url),
            "db_host": self.db_host,
            "ses_region": self.ses_region,
            "email_configured": bool(self.ses_from_email),
            "cors_origins": self.cors_origins,
            "rate_limit": f"{self.rate_limit_max}/{self.rate_limit_window_seconds}s",
            "trust_proxy": self.trust_proxy,
            "fully_configured": self.is_configured,
        }
