"""
Twilio WhatsApp messaging integration with retry logic.
"""

import asyncio
import logging

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client

from family_assistant.config.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Initialize Twilio client
twilio_client = Client(settings.twilio_account_sid, settings.twilio_auth_token)

# WhatsApp caps a message body at 1600 characters
MAX_MESSAGE_LENGTH = 1600


class DeliveryError(Exception):
    """A message could not be delivered after all retries."""


def _whatsapp_address(chat_id: str) -> str:
    if chat_id.startswith("whatsapp:"):
        return chat_id
    return f"whatsapp:{chat_id}"


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=5),
    retry=retry_if_exception_type(TwilioRestException),
    reraise=True
)
def _send_message_sync(message: str, from_number: str, to_number: str):
    """
    Synchronous Twilio message send with retry logic.

    Args:
        message: Text message to send
        from_number: Sender's WhatsApp number
        to_number: Recipient's WhatsApp number

    Returns:
        Twilio message object
    """
    return twilio_client.messages.create(
        body=message,
        from_=from_number,
        to=to_number
    )


async def send_chat_message(chat_id: str, message: str) -> bool:
    """
    Send a WhatsApp text message to a chat.

    Args:
        chat_id: Recipient WhatsApp address
        message: Text message to send

    Returns:
        True if message sent successfully, False otherwise
    """
    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[:MAX_MESSAGE_LENGTH - 1] + "…"

    try:
        msg = await asyncio.to_thread(
            _send_message_sync,
            message=message,
            from_number=settings.twilio_whatsapp_number,
            to_number=_whatsapp_address(chat_id),
        )
        logger.info(f"WhatsApp message sent to {chat_id}. SID: {msg.sid}")
        return True
    except TwilioRestException as e:
        logger.error(f"Failed to send WhatsApp message to {chat_id} after retries: {e}")
        return False


async def deliver_reminder(chat_id: str, text: str) -> None:
    """
    Delivery callback for the reminder scheduler.

    Raises:
        DeliveryError: If Twilio rejected the message after all retries
    """
    if not await send_chat_message(chat_id, text):
        raise DeliveryError(f"could not deliver to {chat_id}")
