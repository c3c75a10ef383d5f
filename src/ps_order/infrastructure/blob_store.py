"""Blob store client for the platform's storage REST API, using ``httpx``.

Endpoints used:
  POST {base}/object/{bucket}/{path}         upload bytes
  POST {base}/object/sign/{bucket}/{path}    {"expiresIn": ttl} -> {"signedURL": ...}

Public URLs have the form ``{base}/object/public/{bucket}/{path}``; the
object path is recovered from everything after the bucket segment.
"""
import logging

import httpx

from config.settings import settings
from src.ps_common.errors import FetchError, UploadError

logger = logging.getLogger(__name__)


class HttpBlobStore:
    def __init__(
        self,
        base_url: str | None = None,
        bucket: str | None = None,
        service_key: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = (base_url or settings.STORAGE_URL).rstrip("/")
        self._bucket = bucket or settings.STORAGE_BUCKET
        self._service_key = service_key if service_key is not None else settings.STORAGE_SERVICE_KEY
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=settings.STORAGE_TIMEOUT_SECONDS)
        return self._client

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._service_key}"}

    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        url = f"{self._base_url}/object/{self._bucket}/{path}"
        headers = {**self._headers(), "Content-Type": content_type, "x-upsert": "false"}
        try:
            resp = await self._get_client().post(url, content=data, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Upload of %s rejected: %s", path, e.response.status_code)
            if e.response.status_code == 413:
                raise UploadError("file is too large", 413) from e
            raise UploadError(f"storage returned {e.response.status_code}", 502) from e
        except httpx.HTTPError as e:
            logger.error("Upload of %s failed: %s", path, e)
            raise UploadError("storage is unreachable", 502) from e
        return self.public_url(path)

    async def get_signed_url(self, path: str, ttl_seconds: int) -> str:
        url = f"{self._base_url}/object/sign/{self._bucket}/{path}"
        try:
            resp = await self._get_client().post(
                url, json={"expiresIn": ttl_seconds}, headers=self._headers()
            )
            resp.raise_for_status()
            signed = resp.json()["signedURL"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error("Signing %s failed: %s", path, e)
            raise FetchError("Could not create a download link for this file") from e
        if signed.startswith("http"):
            return signed
        return f"{self._base_url}/{signed.lstrip('/')}"

    def public_url(self, path: str) -> str:
        return f"{self._base_url}/object/public/{self._bucket}/{path}"

    def object_path(self, url: str) -> str | None:
        """Path inside the bucket for a stored file URL, or None if foreign."""
        parts = url.split("?", 1)[0].split("/")
        if self._bucket not in parts:
            return None
        path = "/".join(parts[parts.index(self._bucket) + 1:])
        return path or None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
