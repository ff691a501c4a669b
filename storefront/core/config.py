"""
Application Configuration Module

Centralizes all configuration using environment variables with Pydantic Settings.
Supports three modes:
    - DEVELOPMENT: Local SQLite database, headless-friendly defaults
    - STAGING: Real database, real configuration, test data
    - PRODUCTION: Real database and the live business configuration

Business constants (menu rules, delivery charge, WhatsApp number, UPI VPA)
live here too so the storefront can be re-pointed at another number or
payee without code changes.

Usage:
    from storefront.core.config import get_settings

    settings = get_settings()
    grand_total = order.total_amount + settings.delivery_charge

Author: Bro Bro Foods
Version: 1.0.0
"""

import logging
import sys
from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentMode(str, Enum):
    """
    Application environment modes.

    Attributes:
        DEVELOPMENT: Local testing with a SQLite file database
        PRODUCTION: Live storefront
        STAGING: Pre-production with production-like configuration
    """
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    STAGING = "staging"


class StorageBackend(str, Enum):
    """Which Order Storage Service implementation to use."""
    SQL = "sql"
    MEMORY = "memory"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    The admin token is a shared secret and should NEVER be committed with
    its real value.

    Attributes:
        env_mode: Current environment (development/production/staging)
        debug: Enable verbose logging and error details

        database_url: SQLAlchemy async connection string
        order_storage: Storage backend (sql or memory)

        whatsapp_number: Business number receiving order messages
        business_vpa: UPI payee address used for payment deep links
        delivery_charge: Flat delivery charge in whole rupees
        min_plates_per_order: Minimum plates accepted per order

        admin_token: Shared secret carried in the URL fragment
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================

    env_mode: EnvironmentMode = Field(
        default=EnvironmentMode.DEVELOPMENT,
        description="Application environment mode"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging"
    )

    # ==========================================================================
    # APPLICATION
    # ==========================================================================

    app_name: str = Field(
        default="Bro Bro Foods Storefront",
        description="Application display name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8001,
        description="API server port"
    )
    app_base_url: str = Field(
        default="http://localhost:8001",
        description="Base URL for the application"
    )

    # ==========================================================================
    # DATABASE / STORAGE
    # ==========================================================================

    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/storefront.db",
        description="SQLAlchemy async connection URL"
    )
    database_echo: bool = Field(
        default=False,
        description="Log every SQL statement"
    )
    order_storage: StorageBackend = Field(
        default=StorageBackend.SQL,
        description="Order storage backend (sql or memory)"
    )

    # ==========================================================================
    # BUSINESS CONFIGURATION
    # ==========================================================================

    business_name: str = Field(
        default="Bro Bro Foods",
        description="Business display name, also the UPI payee name"
    )
    whatsapp_number: str = Field(
        default="7973782618",
        description="WhatsApp number receiving order and payment messages"
    )
    contact_phone: str = Field(
        default="+91 79737 82618",
        description="Customer-facing contact number"
    )
    contact_location: str = Field(
        default="Budhlada, Punjab, India",
        description="Customer-facing location"
    )
    business_vpa: str = Field(
        default="brobromomos@ptyes",
        description="UPI Virtual Payment Address (name@bank)"
    )
    currency_code: str = Field(
        default="INR",
        description="Currency code used in UPI links"
    )
    delivery_charge: int = Field(
        default=20,
        ge=0,
        description="Flat delivery charge in whole rupees"
    )
    min_plates_per_order: int = Field(
        default=2,
        ge=1,
        description="Minimum number of plates required for delivery"
    )
    default_payment_method_id: int = Field(
        default=1,
        description="Payment method id attached to every confirmation"
    )

    # ==========================================================================
    # ADMIN ACCESS
    # ==========================================================================

    admin_token: str = Field(
        default="7973",
        description="Shared secret expected in the URL fragment"
    )
    admin_fragment_key: str = Field(
        default="caffeineAdminToken",
        description="Fragment parameter carrying the admin token"
    )
    admin_changed_by: str = Field(
        default="Admin",
        description="Actor recorded on status changes made from the admin view"
    )

    # ==========================================================================
    # LINK HAND-OFF
    # ==========================================================================

    open_links_in_browser: bool = Field(
        default=True,
        description="Open hand-off links with the system browser (False = headless)"
    )

    # ==========================================================================
    # APP DOWNLOADS
    # ==========================================================================

    customer_apk_url: str = Field(
        default="http://localhost:8001/downloads/bro-bro-foods.apk",
        description="Customer APK download URL"
    )
    customer_apk_filename: str = Field(default="bro-bro-foods.apk")
    customer_apk_label: str = Field(default="Bro Bro Foods")
    customer_apk_version: str = Field(default="1.0.0")
    customer_apk_unavailable_message: str = Field(
        default="The app is being prepared. Please check back in a few minutes."
    )
    admin_apk_url: str = Field(
        default="http://localhost:8001/downloads/bro-bro-foods-admin.apk",
        description="Admin APK download URL"
    )
    admin_apk_filename: str = Field(default="bro-bro-foods-admin.apk")
    admin_apk_label: str = Field(default="Bro Bro Foods Admin")
    admin_apk_version: str = Field(default="1.0.0")
    admin_apk_unavailable_message: str = Field(
        default="Admin app is being prepared. Please check back later."
    )
    availability_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Seconds before an availability probe resolves to unavailable"
    )

    # ==========================================================================
    # FILE STORAGE
    # ==========================================================================

    data_directory: str = Field(
        default="data",
        description="Directory for data files"
    )
    ads_settings_filename: str = Field(
        default="ads_settings.json",
        description="File holding owner ad settings"
    )
    settings_lock_timeout: int = Field(
        default=10,
        description="Seconds to wait for the settings file lock"
    )

    # ==========================================================================
    # VALIDATORS
    # ==========================================================================

    @field_validator("env_mode", mode="before")
    @classmethod
    def validate_env_mode(cls, v: str) -> EnvironmentMode:
        """Convert string to EnvironmentMode enum."""
        if isinstance(v, EnvironmentMode):
            return v
        try:
            return EnvironmentMode(v.lower())
        except ValueError:
            valid = [e.value for e in EnvironmentMode]
            raise ValueError(f"Invalid env_mode. Must be one of: {valid}")

    @field_validator("order_storage", mode="before")
    @classmethod
    def validate_order_storage(cls, v: str) -> StorageBackend:
        """Convert string to StorageBackend enum."""
        if isinstance(v, StorageBackend):
            return v
        try:
            return StorageBackend(v.lower())
        except ValueError:
            valid = [e.value for e in StorageBackend]
            raise ValueError(f"Invalid order_storage. Must be one of: {valid}")

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.env_mode == EnvironmentMode.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.env_mode == EnvironmentMode.PRODUCTION

    @property
    def is_staging(self) -> bool:
        """Check if running in staging mode."""
        return self.env_mode == EnvironmentMode.STAGING

    @property
    def use_real_services(self) -> bool:
        """Check if the production configuration must be complete."""
        return self.env_mode in (EnvironmentMode.PRODUCTION, EnvironmentMode.STAGING)

    @property
    def is_sqlite(self) -> bool:
        """Check if the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    # ==========================================================================
    # VALIDATION METHODS
    # ==========================================================================

    def validate_production_config(self) -> list[str]:
        """
        Validate that production settings are not left at their defaults.

        Returns:
            List of suspicious configuration keys (empty if all set)
        """
        missing = []

        if self.use_real_services:
            if self.admin_token == "7973":
                missing.append("ADMIN_TOKEN")
            if self.is_sqlite:
                missing.append("DATABASE_URL")
            if not self.business_vpa or "@" not in self.business_vpa:
                missing.append("BUSINESS_VPA")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are loaded only once,
    keeping configuration consistent across the application lifecycle.

    Returns:
        Settings: Configured application settings

    Example:
        >>> settings = get_settings()
        >>> print(settings.delivery_charge)
        20
    """
    return Settings()


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configure application-wide logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured root logger
    """
    settings = get_settings()

    if settings.debug:
        level = logging.DEBUG

    log_format = "%(asctime)s │ %(levelname)-8s │ %(name)-25s │ %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    logging.basicConfig(
        level=level,
        format=log_format,
        datefmt=date_format,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("filelock").setLevel(logging.WARNING)

    return logging.getLogger("storefront")

