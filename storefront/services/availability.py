"""
Download Availability Probes

Checks whether the customer/admin APKs can be downloaded yet, with a HEAD
request bounded by a timeout. A timeout, a transport error and a 404 all
read as "unavailable" to the customer; only the logs tell them apart.

Author: Bro Bro Foods
Version: 1.0.0
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from storefront.core.config import get_settings
from storefront.schemas import DownloadKind, DownloadStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApkConfig:
    url: str
    version: str
    label: str
    filename: str
    unavailable_message: str


def get_apk_config(kind: DownloadKind) -> ApkConfig:
    settings = get_settings()
    if kind == DownloadKind.ADMIN:
        return ApkConfig(
            url=settings.admin_apk_url,
            version=settings.admin_apk_version,
            label=settings.admin_apk_label,
            filename=settings.admin_apk_filename,
            unavailable_message=settings.admin_apk_unavailable_message,
        )
    return ApkConfig(
        url=settings.customer_apk_url,
        version=settings.customer_apk_version,
        label=settings.customer_apk_label,
        filename=settings.customer_apk_filename,
        unavailable_message=settings.customer_apk_unavailable_message,
    )


async def _head(
    url: str,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[httpx.Response]:
    """HEAD the URL; None on timeout or transport failure."""
    timeout = timeout or get_settings().availability_timeout_seconds
    owns_client = client is None
    client = client or httpx.AsyncClient(follow_redirects=True)

    try:
        # wait_for cancels the request once the deadline passes
        return await asyncio.wait_for(client.head(url, timeout=timeout), timeout)
    except asyncio.TimeoutError:
        logger.info(f"Availability probe timed out after {timeout}s: {url}")
        return None
    except httpx.HTTPError as e:
        logger.info(f"Availability probe failed for {url}: {e}")
        return None
    finally:
        if owns_client:
            await client.aclose()


def format_size(content_length: Optional[str]) -> Optional[str]:
    """'12.4 MB' from a Content-Length header value."""
    if not content_length:
        return None
    try:
        size_bytes = int(content_length)
    except ValueError:
        return None
    return f"{size_bytes / (1024 * 1024):.1f} MB"


async def check_availability(
    url: str,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """True only for a 2xx answer within the timeout."""
    response = await _head(url, timeout, client)
    return response is not None and response.is_success


async def get_asset_size(
    url: str,
    timeout: Optional[float] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    response = await _head(url, timeout, client)
    if response is None or not response.is_success:
        return None
    return format_size(response.headers.get("content-length"))


async def probe_download(
    kind: DownloadKind,
    client: Optional[httpx.AsyncClient] = None,
) -> DownloadStatus:
    """Availability, size and customer message for one APK."""
    config = get_apk_config(kind)
    response = await _head(config.url, client=client)
    available = response is not None and response.is_success

    return DownloadStatus(
        kind=kind,
        label=config.label,
        version=config.version,
        filename=config.filename,
        url=config.url,
        available=available,
        size=format_size(response.headers.get("content-length")) if available else None,
        message=None if available else config.unavailable_message,
    )
