# SPDX-License-Identifier: Apache-2.0
"""Tests for the rights-protection client (mocked HTTP)."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from pdf_template_filler.errors import ExternalServiceFailure
from pdf_template_filler.protection import ProtectionClient


def mock_session(
    status: int = 200, body: bytes = b"%PDF-1.7 protected", text: str = ""
) -> MagicMock:
    response = AsyncMock()
    response.status = status
    response.read = AsyncMock(return_value=body)
    response.text = AsyncMock(return_value=text)

    session = MagicMock()
    session.post = MagicMock(return_value=AsyncMock())
    session.post.return_value.__aenter__ = AsyncMock(return_value=response)
    session.post.return_value.__aexit__ = AsyncMock(return_value=None)
    session.close = AsyncMock()
    return session


class TestProtectionClient:
    """Tests for ProtectionClient."""

    def test_requires_url(self) -> None:
        with pytest.raises(ValueError, match="URL is required"):
            ProtectionClient("")

    def test_endpoint_url(self) -> None:
        client = ProtectionClient("https://protect.example.com/")
        assert client._url == "https://protect.example.com/proteger-pdf"

    @pytest.mark.asyncio
    async def test_protect_success(self) -> None:
        client = ProtectionClient("https://protect.example.com", api_token="secret")
        session = mock_session()
        client._session = session

        result = await client.protect(b"%PDF-1.7 original", "report.pdf")

        assert result == b"%PDF-1.7 protected"
        call = session.post.call_args
        assert call.args[0] == "https://protect.example.com/proteger-pdf"
        assert call.kwargs["headers"] == {"Authorization": "Bearer secret"}
        assert isinstance(call.kwargs["data"], aiohttp.FormData)

    @pytest.mark.asyncio
    async def test_no_token_no_header(self) -> None:
        client = ProtectionClient("https://protect.example.com")
        session = mock_session()
        client._session = session

        await client.protect(b"%PDF-1.7", "a.pdf")
        assert session.post.call_args.kwargs["headers"] == {}

    @pytest.mark.asyncio
    async def test_http_error(self) -> None:
        client = ProtectionClient("https://protect.example.com")
        client._session = mock_session(status=500, text="internal error")

        with pytest.raises(ExternalServiceFailure) as exc_info:
            await client.protect(b"%PDF-1.7", "a.pdf")
        assert exc_info.value.status == 500
        assert exc_info.value.stage == "protect"
        assert "internal error" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_pdf_response(self) -> None:
        client = ProtectionClient("https://protect.example.com")
        client._session = mock_session(body=b"<html>oops</html>")

        with pytest.raises(ExternalServiceFailure, match="non-PDF"):
            await client.protect(b"%PDF-1.7", "a.pdf")

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        client = ProtectionClient("https://protect.example.com")
        session = MagicMock()
        session.post = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))
        client._session = session

        with pytest.raises(ExternalServiceFailure) as exc_info:
            await client.protect(b"%PDF-1.7", "a.pdf")
        assert isinstance(exc_info.value.cause, aiohttp.ClientConnectionError)

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        client = ProtectionClient("https://protect.example.com")
        session = mock_session()
        client._session = session

        await client.close()
        session.close.assert_awaited_once()
        assert client._session is None
