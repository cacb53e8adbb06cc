# SPDX-License-Identifier: Apache-2.0
"""Client for the external rights-protection service.

The service receives a finished PDF as a multipart upload and returns the
protected PDF. It is an optional post-processing step after assembly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pdf_template_filler.errors import ExternalServiceFailure

if TYPE_CHECKING:
    import aiohttp

logger = logging.getLogger(__name__)


class ProtectionClient:
    """Async client for the rights-protection endpoint.

    Example:
        >>> async with ProtectionClient("https://protect.example.com") as client:
        ...     protected = await client.protect(pdf_bytes, "report.pdf")
    """

    ENDPOINT = "/proteger-pdf"
    UPLOAD_FIELD = "archivo"
    DEFAULT_TIMEOUT = 60.0

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize ProtectionClient.

        Args:
            base_url: Service base URL.
            api_token: Optional bearer token.
            timeout: Total request timeout in seconds.

        Raises:
            ValueError: If base_url is empty.
            ImportError: If aiohttp is not installed.
        """
        if not base_url:
            raise ValueError("Protection service URL is required")

        # Lazy import aiohttp
        try:
            import aiohttp as _aiohttp

            self._aiohttp = _aiohttp
        except ImportError:
            raise ImportError(
                "aiohttp is required for PDF protection. "
                "Install with: pip install pdf-template-filler[protect]"
            ) from None

        self._url = base_url.rstrip("/") + self.ENDPOINT
        self._api_token = api_token
        self._timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> ProtectionClient:
        """Enter async context manager."""
        await self._ensure_session()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = self._aiohttp.ClientSession(
                timeout=self._aiohttp.ClientTimeout(total=self._timeout)
            )
        return self._session

    async def protect(self, pdf_bytes: bytes, filename: str = "document.pdf") -> bytes:
        """Send a PDF to the service and return the protected bytes.

        Args:
            pdf_bytes: Finished PDF.
            filename: File name reported in the upload.

        Returns:
            Protected PDF bytes.

        Raises:
            ExternalServiceFailure: On any transport or service error.
        """
        session = await self._ensure_session()

        form = self._aiohttp.FormData()
        form.add_field(
            self.UPLOAD_FIELD,
            pdf_bytes,
            filename=filename,
            content_type="application/pdf",
        )
        headers = {"Authorization": f"Bearer {self._api_token}"} if self._api_token else {}

        try:
            async with session.post(self._url, data=form, headers=headers) as response:
                if response.status != 200:
                    error_text = await response.text()
                    raise ExternalServiceFailure(
                        f"Protection service error (status {response.status}): "
                        f"{error_text[:200]}",
                        status=response.status,
                    )
                protected = await response.read()
        except self._aiohttp.ClientError as e:
            raise ExternalServiceFailure(
                f"Protection request failed: {e}", cause=e
            ) from e

        if not protected.startswith(b"%PDF"):
            raise ExternalServiceFailure(
                "Protection service returned a non-PDF response", status=200
            )

        logger.info("Protected %s: %d -> %d bytes", filename, len(pdf_bytes), len(protected))
        return protected

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None
