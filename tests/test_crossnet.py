"""Tests for the secondary-network backend client."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from otv.crossnet import CrossNetworkClient
from otv.exceptions import CrossNetworkError


def mock_session(resp=None, error=None):
    session = AsyncMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock(return_value=False)
    if error is not None:
        session.get = MagicMock(side_effect=error)
    else:
        session.get = MagicMock(return_value=AsyncMock(
            __aenter__=AsyncMock(return_value=resp),
            __aexit__=AsyncMock(return_value=False),
        ))
    return session


def mock_response(status=200, data=None):
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=data)
    return resp


class TestCrossNetworkClient:
    """Test fetching candidate records."""

    @pytest.mark.asyncio
    async def test_fetch_candidate(self):
        client = CrossNetworkClient("https://kusama.example.com/")
        session = mock_session(mock_response(data={"rank": 30}))

        with patch("aiohttp.ClientSession", return_value=session):
            data = await client.fetch_candidate("ksm-1")

        assert data == {"rank": 30}
        session.get.assert_called_once_with("https://kusama.example.com/candidate/ksm-1")

    @pytest.mark.asyncio
    async def test_http_error(self):
        client = CrossNetworkClient("https://kusama.example.com")
        session = mock_session(mock_response(status=404))

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(CrossNetworkError, match="HTTP 404"):
                await client.fetch_candidate("ksm-1")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        client = CrossNetworkClient("https://kusama.example.com")
        session = mock_session(error=aiohttp.ClientConnectionError("refused"))

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(CrossNetworkError, match="Connection error"):
                await client.fetch_candidate("ksm-1")

    @pytest.mark.asyncio
    async def test_timeout(self):
        client = CrossNetworkClient("https://kusama.example.com")
        session = mock_session(error=asyncio.TimeoutError())

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(CrossNetworkError, match="timed out"):
                await client.fetch_candidate("ksm-1")

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        client = CrossNetworkClient("https://kusama.example.com")
        session = mock_session(mock_response(data=[1, 2]))

        with patch("aiohttp.ClientSession", return_value=session):
            with pytest.raises(CrossNetworkError, match="Unexpected response"):
                await client.fetch_candidate("ksm-1")
