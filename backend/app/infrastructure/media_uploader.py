"""Cloudinary Media Uploader — signed image upload with retry, backoff, and error mapping.

Invariants:
    - Transient errors (5xx, connection): max_retries retries with exponential backoff
    - Timeouts and client errors (4xx): immediate failure, no retry
    - All failures mapped to MediaUploadError (core/errors.py)
    - Returns the durable https URL (secure_url); callers treat it as opaque

Design Decisions:
    - Plain httpx over the Cloudinary SDK: one endpoint, signature is a sha1 over sorted params
    - ±25% jitter on backoff: prevents synchronized retries from concurrent uploads
    - Unconfigured credentials fail at call time, not startup: the API still serves reads
"""

import asyncio
import hashlib
import logging
import random
import time

import httpx

from app.config import Settings
from app.core.errors import MediaUploadError

logger = logging.getLogger(__name__)

UPLOAD_URL = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Cloudinary signature: sha1("k1=v1&k2=v2" + secret), keys sorted."""
    payload = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{payload}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader:
    """Uploads event images to Cloudinary and returns their secure URL."""

    def __init__(
        self,
        cloud_name: str | None,
        api_key: str | None,
        api_secret: str | None,
        folder: str = "events",
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret
        self.folder = folder
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    @property
    def upload_url(self) -> str:
        return UPLOAD_URL.format(cloud_name=self.cloud_name)

    async def upload(
        self, content: bytes, filename: str, content_type: str | None = None,
    ) -> str:
        """Upload image bytes; retry transient failures."""
        if not self.configured:
            raise MediaUploadError(
                "Cloudinary credentials are not configured", "not_configured",
            )
        files = {
            "file": (filename, content, content_type or "application/octet-stream"),
        }

        for attempt in range(self.max_retries + 1):
            try:
                response = await self._post(self._signed_form(), files)
            except httpx.TimeoutException:
                raise MediaUploadError("Upload timed out", "timeout")
            except httpx.TransportError as e:
                await self._handle_transient_error(str(e), attempt)
                continue

            if response.status_code >= 500:
                await self._handle_transient_error(
                    f"HTTP {response.status_code}", attempt,
                )
                continue
            if response.is_error:
                raise MediaUploadError(
                    self._error_message(response), "client_error",
                )
            return self._secure_url(response)

        # Unreachable: the last attempt either returns or raises
        raise MediaUploadError("Retries exhausted", "exhausted")

    def _signed_form(self) -> dict[str, str]:
        params = {"folder": self.folder, "timestamp": str(int(time.time()))}
        return {
            **params,
            "api_key": self.api_key or "",
            "signature": sign_params(params, self.api_secret or ""),
        }

    async def _post(self, data: dict, files: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.upload_url, data=data, files=files)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(self.upload_url, data=data, files=files)

    async def _handle_transient_error(self, reason: str, attempt: int) -> None:
        if attempt >= self.max_retries:
            raise MediaUploadError(
                f"Upload failed after {attempt + 1} attempts: {reason}",
                "transient",
            )
        delay = self._calculate_backoff(attempt)
        logger.warning(
            f"Media upload transient error ({reason}), retrying in {delay:.2f}s",
            extra={"attempt": attempt + 1},
        )
        await asyncio.sleep(delay)

    def _calculate_backoff(self, attempt: int) -> float:
        """Exponential backoff with ±25% jitter, in seconds."""
        base = min(self.base_delay_ms * (2 ** attempt), self.max_delay_ms)
        jitter = base * 0.25 * (2 * random.random() - 1)
        return max(0.0, (base + jitter) / 1000)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return response.json()["error"]["message"]
        except (ValueError, KeyError, TypeError):
            return f"HTTP {response.status_code}"

    @staticmethod
    def _secure_url(response: httpx.Response) -> str:
        try:
            url = response.json().get("secure_url")
        except ValueError:
            url = None
        if not url:
            raise MediaUploadError(
                "Response did not include secure_url", "invalid_response",
            )
        return url


def build_media_uploader(settings: Settings) -> CloudinaryUploader:
    return CloudinaryUploader(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        folder=settings.cloudinary_folder,
        max_retries=settings.media_upload_max_retries,
        timeout_seconds=settings.media_upload_timeout_seconds,
    )
