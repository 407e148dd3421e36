"""
Tests for the event relay client.
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from therapy_chat.core.errors import RelayUnavailable
from therapy_chat.services.event_relay import EventRelay


def _mock_client(mock_client, response=None, side_effect=None):
    mock_instance = AsyncMock()
    mock_instance.post.return_value = response
    mock_instance.post.side_effect = side_effect
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestEventRelay:

    def test_url(self):
        relay = EventRelay("http://localhost:8288/", "abc")
        assert relay.url == "http://localhost:8288/e/abc"

    @pytest.mark.asyncio
    async def test_publish_posts_event(self):
        relay = EventRelay("http://relay.test", "key", timeout=3.0)
        mock_response = MagicMock()
        mock_response.json.return_value = {"ids": ["01H"], "status": 200}
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            instance = _mock_client(mock_client, response=mock_response)

            ids = await relay.publish("therapy/session.message", {"message": "hi"})

        assert ids == ["01H"]
        mock_client.assert_called_once_with(timeout=3.0)
        instance.post.assert_called_once_with(
            "http://relay.test/e/key",
            json={"name": "therapy/session.message", "data": {"message": "hi"}},
        )

    @pytest.mark.asyncio
    async def test_connection_error(self):
        relay = EventRelay("http://relay.test", "key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, side_effect=httpx.ConnectError("refused"))

            with pytest.raises(RelayUnavailable):
                await relay.publish("evt", {})

    @pytest.mark.asyncio
    async def test_timeout(self):
        relay = EventRelay("http://relay.test", "key")

        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, side_effect=httpx.ConnectTimeout("slow"))

            with pytest.raises(RelayUnavailable):
                await relay.publish("evt", {})

    @pytest.mark.asyncio
    async def test_rejected_event(self):
        relay = EventRelay("http://relay.test", "key")
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "401", request=MagicMock(), response=MagicMock(status_code=401)
        )

        with patch("httpx.AsyncClient") as mock_client:
            _mock_client(mock_client, response=mock_response)

            with pytest.raises(RelayUnavailable):
                await relay.publish("evt", {})
