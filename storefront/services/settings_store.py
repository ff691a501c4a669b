"""
Client Settings Store

Small key/value settings (owner ad configuration, promo popup dismissal)
kept behind an explicit store object instead of module globals:

    - a SettingsPort does the raw reads and writes (JSON file or memory)
    - a ConfigStore parses, validates and publishes changes to subscribers

The JSON file port serialises access with a FileLock so the API and any
admin script can write it concurrently.

Author: Bro Bro Foods
Version: 1.0.0
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from filelock import FileLock, Timeout
from pydantic import BaseModel, ValidationError

from storefront.core.config import get_settings
from storefront.core.exceptions import StorageUnavailableError
from storefront.schemas import (
    AdsConfig,
    AdsSettings,
    AdsSettingsValidation,
    AdsSlots,
    PromoState,
)

logger = logging.getLogger(__name__)

ADS_SETTINGS_KEY = "brobro_ads_settings"
PROMO_DISMISSED_KEY = "promo_popup_dismissed"

ADSENSE_CLIENT_ID_PATTERN = re.compile(r"ca-pub-\d{16}")

T = TypeVar("T", bound=BaseModel)


# =============================================================================
# PORTS
# =============================================================================

class SettingsPort(ABC):
    """Raw string storage keyed by setting name."""

    @abstractmethod
    def read(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    def write(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class MemorySettingsPort(SettingsPort):
    """Process-local port; one instance per session for session-only flags."""

    def __init__(self):
        self._values: dict[str, str] = {}

    def read(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def write(self, key: str, value: str) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)


class JsonFileSettingsPort(SettingsPort):
    """All keys in one JSON object on disk, guarded by a lock file."""

    def __init__(self, path: Path, lock_timeout: float = 10):
        self.path = Path(path)
        self.lock = FileLock(str(self.path) + ".lock", timeout=lock_timeout)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        tmp.replace(self.path)

    def read(self, key: str) -> Optional[str]:
        with self.lock:
            return self._load().get(key)

    def write(self, key: str, value: str) -> None:
        try:
            with self.lock:
                data = self._load()
                data[key] = value
                self._dump(data)
        except Timeout as e:
            raise StorageUnavailableError(f"Settings file is busy: {self.path}") from e

    def delete(self, key: str) -> None:
        try:
            with self.lock:
                data = self._load()
                if key in data:
                    del data[key]
                    self._dump(data)
        except Timeout as e:
            raise StorageUnavailableError(f"Settings file is busy: {self.path}") from e


# =============================================================================
# STORE
# =============================================================================

class ConfigStore(Generic[T]):
    """
    Typed settings value with change notification.

    Unreadable or invalid stored data falls back to the default rather than
    breaking the page.

    Example:
        >>> store = ConfigStore(MemorySettingsPort(), "promo", PromoState, PromoState())
        >>> unsubscribe = store.subscribe(print)
        >>> store.save(PromoState(dismissed=True))
        dismissed=True
    """

    def __init__(self, port: SettingsPort, key: str, model: type[T], default: T):
        self.port = port
        self.key = key
        self.model = model
        self.default = default
        self._subscribers: list[Callable[[T], None]] = []

    def load(self) -> T:
        try:
            raw = self.port.read(self.key)
        except (OSError, ValueError, Timeout) as e:
            logger.error(f"Failed to load settings '{self.key}': {e}")
            return self.default.model_copy()

        if raw is None:
            return self.default.model_copy()

        try:
            stored = json.loads(raw)
            return self.model.model_validate({**self.default.model_dump(), **stored})
        except (ValueError, TypeError, ValidationError) as e:
            logger.error(f"Ignoring invalid settings '{self.key}': {e}")
            return self.default.model_copy()

    def save(self, value: T) -> T:
        self.port.write(self.key, value.model_dump_json())
        self._publish(value)
        return value

    def clear(self) -> T:
        self.port.delete(self.key)
        default = self.default.model_copy()
        self._publish(default)
        return default

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Call callback with every saved value; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, value: T) -> None:
        for callback in list(self._subscribers):
            callback(value)


@lru_cache()
def get_ads_store() -> ConfigStore[AdsSettings]:
    """Owner ad settings persisted under the data directory."""
    settings = get_settings()
    port = JsonFileSettingsPort(
        Path(settings.data_directory) / settings.ads_settings_filename,
        lock_timeout=settings.settings_lock_timeout,
    )
    return ConfigStore(port, ADS_SETTINGS_KEY, AdsSettings, AdsSettings())


def new_promo_store() -> ConfigStore[PromoState]:
    """Promo dismissal lives for one session only, so every session gets its own store."""
    return ConfigStore(MemorySettingsPort(), PROMO_DISMISSED_KEY, PromoState, PromoState())


# =============================================================================
# ADSENSE HELPERS
# =============================================================================

def validate_ads_settings(settings: AdsSettings) -> AdsSettingsValidation:
    """Required fields only matter once ads are enabled."""
    errors = []

    if settings.enabled:
        if not settings.adsense_client_id.strip():
            errors.append("AdSense Client ID is required")
        elif not settings.adsense_client_id.startswith("ca-pub-"):
            errors.append('AdSense Client ID must start with "ca-pub-"')

        if not settings.top_banner_slot_id.strip():
            errors.append("Top Banner Slot ID is required")

    return AdsSettingsValidation(valid=not errors, errors=errors)


@dataclass
class SnippetExtraction:
    valid: bool
    client_id: str = ""
    error: Optional[str] = None


def extract_adsense_client_id(snippet: Optional[str]) -> SnippetExtraction:
    """
    Pull the ca-pub-XXXXXXXXXXXXXXXX id out of a pasted snippet.

    Accepts a full <script> tag, the script URL, or the bare id.
    """
    if not snippet or not snippet.strip():
        return SnippetExtraction(valid=False, error="Please paste your AdSense script snippet")

    match = ADSENSE_CLIENT_ID_PATTERN.search(snippet.strip())
    if not match:
        return SnippetExtraction(
            valid=False,
            error=(
                "Could not find a valid AdSense client ID "
                "(ca-pub-XXXXXXXXXXXXXXXX) in the snippet"
            ),
        )

    return SnippetExtraction(valid=True, client_id=match.group(0))


def generate_adsense_head_script(client_id: str) -> str:
    if not client_id or not client_id.startswith("ca-pub-"):
        return ""
    return (
        f'<script async src="https://pagead2.googlesyndication.com/pagead/js/'
        f'adsbygoogle.js?client={client_id}" crossorigin="anonymous"></script>'
    )


def generate_adsense_slot(client_id: str, slot_id: str) -> str:
    if not client_id or not slot_id:
        return ""
    return (
        f'<ins class="adsbygoogle" style="display:block" '
        f'data-ad-client="{client_id}" data-ad-slot="{slot_id}" '
        f'data-ad-format="auto" data-full-width-responsive="true"></ins>\n'
        f"<script>(adsbygoogle = window.adsbygoogle || []).push({{}});</script>"
    )


def build_ads_config(settings: AdsSettings, native_wrapper: bool = False) -> AdsConfig:
    """
    Public ad configuration for the page.

    Disabled (all snippets empty) unless the owner enabled ads with valid
    settings, and inside the native app wrapper unless explicitly allowed.
    """
    if not settings.enabled or not validate_ads_settings(settings).valid:
        return AdsConfig()
    if native_wrapper and not settings.enable_on_capacitor:
        return AdsConfig()

    client_id = settings.adsense_client_id
    return AdsConfig(
        enabled=True,
        provider_head_snippet=generate_adsense_head_script(client_id),
        slots=AdsSlots(
            top_banner=generate_adsense_slot(client_id, settings.top_banner_slot_id),
            bottom_banner=generate_adsense_slot(client_id, settings.bottom_banner_slot_id),
        ),
    )
