"""Supabase Storage client.

This module provides a client for the object storage endpoints used by the
asset scripts: listing and creating buckets, uploading presenter/studio
reference images, listing and deleting files, and building public URLs that
the image and video generation APIs can fetch.

Architecture Pattern:
    Simple HTTP client wrapper - no retry logic
    Async-only interface using httpx.AsyncClient

Usage:
    client = StorageClient(url, service_role_key)
    await client.create_bucket("flp", public=True)
    await client.upload_file("flp", "ana/front.png", Path("front.png"))
    print(client.public_url("flp", "ana/front.png"))
    await client.close()
"""

import mimetypes
from pathlib import Path
from typing import Any

import httpx

from fantasy_ops.utils.logging import get_logger

log = get_logger(__name__)

# 200MB hard cap, same guard as other upload helpers
MAX_UPLOAD_BYTES = 200 * 1024 * 1024


class StorageClient:
    """Client for Supabase Storage buckets and objects.

    Attributes:
        project_url: Supabase project URL (used for public URLs)
        base_url: Storage endpoint (<project_url>/storage/v1)
        client: Async HTTP client carrying the service role credentials
    """

    def __init__(
        self,
        project_url: str,
        service_role_key: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.project_url = project_url.rstrip("/")
        self.base_url = f"{self.project_url}/storage/v1"
        self.client = httpx.AsyncClient(
            timeout=60.0,
            transport=transport,
            headers={
                "apikey": service_role_key,
                "Authorization": f"Bearer {service_role_key}",
            },
        )

    async def list_buckets(self) -> list[dict[str, Any]]:
        """List all buckets (each with name, public flag, timestamps)."""
        response = await self.client.get(f"{self.base_url}/bucket")
        response.raise_for_status()
        return response.json()

    async def create_bucket(
        self,
        name: str,
        public: bool = True,
        file_size_limit: int | None = None,
        allowed_mime_types: list[str] | None = None,
    ) -> bool:
        """Create a bucket.

        Returns:
            True if created, False if a bucket with that name already exists.

        Raises:
            httpx.HTTPStatusError: On any other HTTP error.
        """
        payload: dict[str, Any] = {"id": name, "name": name, "public": public}
        if file_size_limit is not None:
            payload["file_size_limit"] = file_size_limit
        if allowed_mime_types:
            payload["allowed_mime_types"] = allowed_mime_types

        response = await self.client.post(f"{self.base_url}/bucket", json=payload)
        if response.status_code in (400, 409) and "already exists" in response.text.lower():
            log.info("storage_bucket_exists", bucket=name)
            return False
        response.raise_for_status()
        log.info("storage_bucket_created", bucket=name, public=public)
        return True

    async def list_files(
        self,
        bucket: str,
        prefix: str = "",
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict[str, Any]]:
        """List objects under a prefix, sorted by name."""
        response = await self.client.post(
            f"{self.base_url}/object/list/{bucket}",
            json={
                "prefix": prefix,
                "limit": limit,
                "offset": offset,
                "sortBy": {"column": "name", "order": "asc"},
            },
        )
        response.raise_for_status()
        return response.json()

    async def list_all_files(self, bucket: str, prefix: str = "", page_size: int = 100) -> list[dict[str, Any]]:
        """List every object under a prefix, requesting pages until a short one."""
        files: list[dict[str, Any]] = []
        while True:
            page = await self.list_files(bucket, prefix=prefix, limit=page_size, offset=len(files))
            files.extend(page)
            if len(page) < page_size:
                return files

    async def upload_file(
        self,
        bucket: str,
        remote_path: str,
        local_path: Path,
        content_type: str | None = None,
        upsert: bool = True,
    ) -> str:
        """Upload a local file and return its public URL.

        Args:
            bucket: Target bucket
            remote_path: Object path inside the bucket (e.g., "ana/front.png")
            local_path: File to upload
            content_type: MIME type (guessed from the extension when omitted)
            upsert: Overwrite an existing object with the same path

        Raises:
            FileNotFoundError: If local_path doesn't exist
            ValueError: If the file is empty or larger than 200MB
            httpx.HTTPStatusError: If Storage returns HTTP error
        """
        if not local_path.exists():
            raise FileNotFoundError(f"File not found: {local_path}")

        file_size = local_path.stat().st_size
        if file_size == 0:
            raise ValueError(f"File is empty: {local_path}")
        if file_size > MAX_UPLOAD_BYTES:
            raise ValueError(f"File too large ({file_size} bytes): {local_path}")

        mime = content_type or mimetypes.guess_type(local_path.name)[0] or "application/octet-stream"
        response = await self.client.post(
            f"{self.base_url}/object/{bucket}/{remote_path.lstrip('/')}",
            content=local_path.read_bytes(),
            headers={"Content-Type": mime, "x-upsert": "true" if upsert else "false"},
        )
        response.raise_for_status()

        url = self.public_url(bucket, remote_path)
        log.info("storage_upload_success", bucket=bucket, path=remote_path, size=file_size)
        return url

    async def delete_files(self, bucket: str, paths: list[str]) -> list[dict[str, Any]]:
        """Delete objects by path and return the deleted object records."""
        if not paths:
            return []
        response = await self.client.request(
            "DELETE",
            f"{self.base_url}/object/{bucket}",
            json={"prefixes": paths},
        )
        response.raise_for_status()
        log.info("storage_delete", bucket=bucket, count=len(paths))
        return response.json()

    def public_url(self, bucket: str, remote_path: str) -> str:
        """Build the public URL of an object (no network call)."""
        return f"{self.base_url}/object/public/{bucket}/{remote_path.lstrip('/')}"

    async def close(self) -> None:
        """Close HTTP client connection."""
        await self.client.aclose()
