"""Configuration management for the portfolio gateway."""

import os
from typing import List, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError

# Load environment variables from .env if present (non-fatal when missing)
load_dotenv()


class Settings:
    """Application settings sourced from environment variables."""

    def __init__(self) -> None:
        # Broker credentials
        self.kite_api_key = os.getenv("KITE_API_KEY", "")
        self.kite_api_secret = os.getenv("KITE_API_SECRET", "")
        self.kite_root_url = os.getenv("KITE_ROOT_URL", "https://api.kite.trade")
        self.kite_redirect_url = os.getenv(
            "KITE_REDIRECT_URL", "http://127.0.0.1:3000/callback"
        )

        # Server
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = self._get_int("PORT", 3000)

        # Monitoring
        self.monitor_interval_seconds = self._get_float("MONITOR_INTERVAL_SECONDS", 60.0)
        self.monitor_tick_resolution = self._get_float("MONITOR_TICK_RESOLUTION", 1.0)
        self.broker_timeout_seconds = self._get_float("BROKER_TIMEOUT_SECONDS", 10.0)

        # Logging
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_file = os.getenv("LOG_FILE") or None

        # Flags
        self.debug = self._get_bool("DEBUG", False)
        self.dry_run = self._get_bool("DRY_RUN", True)
        self.auto_login = self._get_bool("AUTO_LOGIN", False)

    def missing_credentials(self) -> List[str]:
        """Names of required credentials that are not set."""
        missing = []
        if not self.kite_api_key:
            missing.append("KITE_API_KEY")
        if not self.kite_api_secret:
            missing.append("KITE_API_SECRET")
        return missing

    def validate(self) -> None:
        """Raise ConfigurationError when the broker credentials are incomplete."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Required environment variables are missing: {', '.join(missing)}. "
                "Example usage: KITE_API_KEY=your_api_key KITE_API_SECRET=your_api_secret "
                "python -m portfolio_gateway.main"
            )

    @property
    def masked_api_key(self) -> Optional[str]:
        if not self.kite_api_key:
            return None
        return self.kite_api_key[:4] + "..."

    @staticmethod
    def _get_bool(name: str, default: bool) -> bool:
        value = os.getenv(name)
        if value is None:
            return default
        return value.strip().lower() in {"1", "true", "yes", "on"}

    @staticmethod
    def _get_float(name: str, default: float) -> float:
        value = os.getenv(name)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    @staticmethod
    def _get_int(name: str, default: int) -> int:
        value = os.getenv(name)
        if value is None:
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default


# Global settings instance
settings = Settings()
