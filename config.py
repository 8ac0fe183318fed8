"""
Configuration module for the Cosmetology Booking service.
Loads environment variables and provides typed configuration.
"""

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.constants import HOURS_IN_DAY

# Load .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Business hours (UTC)
    business_start_hour: int = 9
    business_end_hour: int = 18
    slot_interval_minutes: int = 30

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def validate_business_hours(self) -> None:
        """
        Validate the business hours window and slot granularity.

        Raises:
            ValueError: If hours are out of range or the interval is not positive
        """
        start = self.business_start_hour
        end = self.business_end_hour

        if not 0 <= start < end <= HOURS_IN_DAY:
            raise ValueError(
                f"Invalid business hours: start={start}, end={end}. "
                f"Expected 0 <= start < end <= {HOURS_IN_DAY}."
            )
        if self.slot_interval_minutes <= 0:
            raise ValueError(
                f"Invalid slot interval: {self.slot_interval_minutes}. "
                f"Slot interval must be a positive number of minutes."
            )

    def validate_all_required(self) -> None:
        """
        Validate that all required settings are present.

        Raises:
            ValueError: If required fields are missing or invalid
        """
        required_fields = ["supabase_url", "supabase_key"]

        missing = []
        for field in required_fields:
            value = getattr(self, field, None)

            if not value:
                missing.append(field)
                continue

            # Check for placeholder values
            if str(value).lower().startswith("your_"):
                missing.append(field)

        if missing:
            raise ValueError(
                f"Missing or invalid required configuration: "
                f"{', '.join(missing)}. "
                f"Please check your .env file and ensure all required "
                f"values are set."
            )

        self.validate_business_hours()


# Global settings instance
settings = Settings()
