"""
Integration tests for WhatsApp webhook endpoint.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, patch, MagicMock
from fastapi.testclient import TestClient

from family_assistant.domain.processed_message import ProcessedMessage
from family_assistant.main import app
from family_assistant.usecases.command_service import GENERIC_ERROR
from family_assistant.utils.time import get_current_time


class TestWhatsAppWebhook:
    """Tests for the WhatsApp webhook endpoint."""

    @pytest.fixture
    def client(self):
        """Create a test client."""
        return TestClient(app)

    @pytest.fixture
    def valid_webhook_data(self):
        """Valid webhook form data."""
        return {
            "Body": "/add Pay the bills",
            "From": "whatsapp:+15550001111",
            "MessageSid": "SM123456789abcdef",
            "ProfileName": "Alice",
        }

    def test_health_check(self, client):
        """Test health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "Family Assistant"

    @patch("family_assistant.api.whatsapp_webhook.is_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.mark_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.send_chat_message", new_callable=AsyncMock)
    def test_webhook_processes_command(
        self,
        mock_send,
        mock_mark,
        mock_is_processed,
        client,
        valid_webhook_data
    ):
        """Test that webhook runs a command and replies to the sender."""
        mock_is_processed.return_value = False
        mock_mark.return_value = True
        mock_send.return_value = True

        with patch("family_assistant.api.whatsapp_webhook.DatabaseSession") as mock_db:
            mock_session = AsyncMock()
            mock_db.return_value.__aenter__.return_value = mock_session

            with patch("family_assistant.api.whatsapp_webhook.CommandService") as mock_service:
                mock_service_instance = MagicMock()
                mock_service_instance.handle = AsyncMock(return_value="✅ Todo added!")
                mock_service.return_value = mock_service_instance

                response = client.post(
                    "/webhook/whatsapp",
                    data=valid_webhook_data
                )

        assert response.status_code == 200
        mock_mark.assert_called_once_with("SM123456789abcdef")
        mock_send.assert_called_once_with("whatsapp:+15550001111", "✅ Todo added!")

        command, context = mock_service_instance.handle.call_args.args
        assert command.name == "add"
        assert command.raw_args == "Pay the bills"
        assert context.chat_id == "whatsapp:+15550001111"
        assert context.sender.first_name == "Alice"
        assert context.chat_title == "Alice's family"

    @patch("family_assistant.api.whatsapp_webhook.is_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.send_chat_message", new_callable=AsyncMock)
    def test_webhook_skips_duplicate_message(
        self,
        mock_send,
        mock_is_processed,
        client,
        valid_webhook_data
    ):
        """Test that webhook skips already processed messages."""
        mock_is_processed.return_value = True

        response = client.post(
            "/webhook/whatsapp",
            data=valid_webhook_data
        )

        assert response.status_code == 200
        mock_send.assert_not_called()

    @patch("family_assistant.api.whatsapp_webhook.is_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.mark_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.send_chat_message", new_callable=AsyncMock)
    def test_webhook_skips_concurrent_duplicate(
        self,
        mock_send,
        mock_mark,
        mock_is_processed,
        client,
        valid_webhook_data
    ):
        """Test that a SID claimed by another request is not handled twice."""
        mock_is_processed.return_value = False
        mock_mark.return_value = False

        response = client.post("/webhook/whatsapp", data=valid_webhook_data)

        assert response.status_code == 200
        mock_send.assert_not_called()

    @patch("family_assistant.api.whatsapp_webhook.is_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.mark_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.send_chat_message", new_callable=AsyncMock)
    def test_webhook_ignores_plain_text(
        self,
        mock_send,
        mock_mark,
        mock_is_processed,
        client
    ):
        """Test that webhook ignores messages that are not commands."""
        mock_is_processed.return_value = False
        mock_mark.return_value = True

        data = {
            "Body": "Good morning everyone",
            "From": "whatsapp:+15550001111",
            "MessageSid": "SM123456789",
        }

        response = client.post("/webhook/whatsapp", data=data)

        assert response.status_code == 200
        mock_send.assert_not_called()

    @patch("family_assistant.api.whatsapp_webhook.is_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.mark_message_processed", new_callable=AsyncMock)
    @patch("family_assistant.api.whatsapp_webhook.send_chat_message", new_callable=AsyncMock)
    def test_webhook_reports_unexpected_errors(
        self,
        mock_send,
        mock_mark,
        mock_is_processed,
        client,
        valid_webhook_data
    ):
        """Test that a failing session still produces a reply."""
        mock_is_processed.return_value = False
        mock_mark.return_value = True

        with patch("family_assistant.api.whatsapp_webhook.DatabaseSession") as mock_db:
            mock_db.return_value.__aenter__.side_effect = RuntimeError("database is locked")

            response = client.post("/webhook/whatsapp", data=valid_webhook_data)

        assert response.status_code == 200
        mock_send.assert_called_once_with("whatsapp:+15550001111", GENERIC_ERROR)

    def test_webhook_rejects_invalid_signature(self, client, valid_webhook_data):
        """Test that a bad Twilio signature is refused."""
        with patch("family_assistant.api.whatsapp_webhook.validate_twilio_signature", return_value=False):
            response = client.post("/webhook/whatsapp", data=valid_webhook_data)

        assert response.status_code == 403


class TestProcessedMessageDeduplication:
    """Tests for message deduplication using SQLite."""

    @pytest.mark.asyncio
    async def test_is_message_processed_returns_false_for_new(self, test_session_factory):
        """Test that new messages are not marked as processed."""
        from family_assistant.api.whatsapp_webhook import is_message_processed

        with patch("family_assistant.api.whatsapp_webhook.async_session_factory", test_session_factory):
            result = await is_message_processed("NEW_MESSAGE_SID")

        assert result is False

    @pytest.mark.asyncio
    async def test_mark_and_check_processed(self, test_session_factory):
        """Test marking a message as processed and checking it."""
        from family_assistant.api.whatsapp_webhook import is_message_processed, mark_message_processed

        with patch("family_assistant.api.whatsapp_webhook.async_session_factory", test_session_factory):
            assert await mark_message_processed("TEST_SID_123") is True
            assert await is_message_processed("TEST_SID_123") is True

            # A second claim on the same SID loses
            assert await mark_message_processed("TEST_SID_123") is False

    @pytest.mark.asyncio
    async def test_cleanup_removes_old_messages(self, test_session_factory, test_session):
        """Test that only stale message SIDs are removed."""
        from family_assistant.api.whatsapp_webhook import cleanup_old_processed_messages, is_message_processed

        now = get_current_time()
        test_session.add(ProcessedMessage(message_sid="OLD_SID", processed_at=now - timedelta(days=8)))
        test_session.add(ProcessedMessage(message_sid="NEW_SID", processed_at=now - timedelta(days=1)))
        await test_session.commit()

        with patch("family_assistant.api.whatsapp_webhook.async_session_factory", test_session_factory):
            removed = await cleanup_old_processed_messages(days=7)

            assert removed == 1
            assert await is_message_processed("OLD_SID") is False
            assert await is_message_processed("NEW_SID") is True
