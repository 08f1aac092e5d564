"""
Unit tests for the Intercom delivery client

Tests:
- Client initialization
- Retry logic with exponential backoff
- Reply posting and message id extraction
"""
import pytest
from unittest.mock import AsyncMock, patch, MagicMock
import httpx

from supportiq.services.intercom import IntercomClient


@pytest.fixture
def intercom_client():
    return IntercomClient(access_token="test-token", admin_id="admin-7", base_url="https://api.intercom.test/")


def _response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.status_code = 200
    return response


class TestIntercomClientInit:
    def test_client_initialization(self, intercom_client):
        assert intercom_client.base_url == "https://api.intercom.test"
        assert intercom_client.headers["Authorization"] == "Bearer test-token"
        assert intercom_client.timeout == 30.0
        assert intercom_client.max_retries == 3


class TestMakeRequest:
    @pytest.mark.asyncio
    async def test_retry_on_rate_limit(self, intercom_client):
        """Two 429s, then success"""
        with patch("httpx.AsyncClient") as mock_client:
            error_response = MagicMock()
            error_response.status_code = 429

            mock_request = AsyncMock(side_effect=[
                httpx.HTTPStatusError("Rate limited", request=MagicMock(), response=error_response),
                httpx.HTTPStatusError("Rate limited", request=MagicMock(), response=error_response),
                _response({"id": "part-1"}),
            ])
            mock_client.return_value.__aenter__.return_value.request = mock_request

            with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
                result = await intercom_client._make_request("GET", "me")

            assert result == {"id": "part-1"}
            assert mock_request.call_count == 3
            assert [c.args[0] for c in mock_sleep.call_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_retry_exhaustion(self, intercom_client):
        with patch("httpx.AsyncClient") as mock_client:
            error_response = MagicMock()
            error_response.status_code = 503

            mock_request = AsyncMock(side_effect=httpx.HTTPStatusError(
                "Unavailable", request=MagicMock(), response=error_response
            ))
            mock_client.return_value.__aenter__.return_value.request = mock_request

            with patch("asyncio.sleep", new_callable=AsyncMock):
                with pytest.raises(httpx.HTTPStatusError):
                    await intercom_client._make_request("GET", "me")

            assert mock_request.call_count == 3

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, intercom_client):
        with patch("httpx.AsyncClient") as mock_client:
            error_response = MagicMock()
            error_response.status_code = 404

            mock_request = AsyncMock(side_effect=httpx.HTTPStatusError(
                "Not found", request=MagicMock(), response=error_response
            ))
            mock_client.return_value.__aenter__.return_value.request = mock_request

            with pytest.raises(httpx.HTTPStatusError):
                await intercom_client._make_request("GET", "conversations/404")

            assert mock_request.call_count == 1


class TestSendReply:
    @pytest.mark.asyncio
    async def test_send_reply_payload(self, intercom_client):
        with patch.object(intercom_client, "_make_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {
                "id": "conv-9",
                "conversation_parts": {
                    "conversation_parts": [{"id": "part-1"}, {"id": "part-2"}]
                },
            }

            message_id = await intercom_client.send_reply("conv-9", "Try resetting your password.")

            assert message_id == "part-2"
            mock_request.assert_awaited_once_with(
                "POST",
                "conversations/conv-9/reply",
                json={
                    "message_type": "comment",
                    "type": "admin",
                    "admin_id": "admin-7",
                    "body": "Try resetting your password.",
                },
            )

    @pytest.mark.asyncio
    async def test_send_reply_without_parts(self, intercom_client):
        with patch.object(intercom_client, "_make_request", new_callable=AsyncMock) as mock_request:
            mock_request.return_value = {"id": "conv-9"}

            assert await intercom_client.send_reply("conv-9", "Hello") == "conv-9"
