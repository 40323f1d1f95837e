"""
WhatsApp webhook endpoint for receiving commands from Twilio.
"""

import logging
from datetime import timedelta
from typing import Dict, Optional

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from twilio.request_validator import RequestValidator

from family_assistant.commands.parser import parse_command
from family_assistant.config.settings import get_settings
from family_assistant.domain.processed_message import ProcessedMessage
from family_assistant.infrastructure.database import DatabaseSession, async_session_factory
from family_assistant.infrastructure.twilio_whatsapp import send_chat_message
from family_assistant.usecases.command_service import GENERIC_ERROR, CommandContext, CommandService
from family_assistant.usecases.family_service import SenderProfile
from family_assistant.utils.time import get_current_time

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()


def empty_twiml() -> Response:
    return Response(content="", media_type="text/xml")


async def is_message_processed(message_sid: str) -> bool:
    """
    Check if a message has already been processed.

    Args:
        message_sid: Twilio message SID

    Returns:
        True if message was already processed
    """
    async with async_session_factory() as session:
        result = await session.execute(
            select(ProcessedMessage).where(ProcessedMessage.message_sid == message_sid)
        )
        return result.scalar_one_or_none() is not None


async def mark_message_processed(message_sid: str) -> bool:
    """
    Mark a message as processed.

    Returns:
        False if another request recorded the same SID first
    """
    async with async_session_factory() as session:
        session.add(ProcessedMessage(message_sid=message_sid, processed_at=get_current_time()))
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            return False
    return True


async def cleanup_old_processed_messages(days: int = 7) -> int:
    """
    Remove processed messages older than specified days.

    Args:
        days: Number of days to retain message SIDs

    Returns:
        Number of rows removed
    """
    async with async_session_factory() as session:
        cutoff = get_current_time() - timedelta(days=days)
        result = await session.execute(
            delete(ProcessedMessage).where(ProcessedMessage.processed_at < cutoff)
        )
        await session.commit()
        return result.rowcount


def validate_twilio_signature(request: Request, params: Dict[str, str]) -> bool:
    """
    Validate the Twilio webhook signature.

    Args:
        request: FastAPI request object
        params: Posted form fields

    Returns:
        True if signature is valid
    """
    if not settings.validate_twilio_signature:
        return True

    validator = RequestValidator(settings.twilio_auth_token)
    signature = request.headers.get("X-Twilio-Signature", "")
    return validator.validate(str(request.url), params, signature)


@router.post("/webhook/whatsapp")
async def whatsapp_webhook(
    request: Request,
    Body: str = Form(default=""),
    From: str = Form(...),
    MessageSid: str = Form(...),
    ProfileName: Optional[str] = Form(default=None),
):
    """
    Handle incoming WhatsApp messages from Twilio.

    Slash commands are executed and answered through the Twilio API;
    anything else is ignored.
    """
    form = await request.form()
    params = {key: value for key, value in form.items() if isinstance(value, str)}

    if not validate_twilio_signature(request, params):
        logger.warning(f"Invalid Twilio signature for message {MessageSid}")
        raise HTTPException(status_code=403, detail="Invalid signature")

    # Idempotency check - Twilio retries webhooks it considers failed
    if await is_message_processed(MessageSid):
        logger.info(f"Message {MessageSid} already processed, skipping")
        return empty_twiml()

    if not await mark_message_processed(MessageSid):
        logger.info(f"Message {MessageSid} claimed by a concurrent request, skipping")
        return empty_twiml()

    logger.info(f"Received message from {From}, SID: {MessageSid}")

    command = parse_command(Body)
    if command is None:
        logger.info("Not a command, skipping")
        return empty_twiml()

    # WhatsApp conversations are one-to-one: the sender address is also the chat
    first_name = (ProfileName or "").strip()
    context = CommandContext(
        sender=SenderProfile(external_id=From, first_name=first_name),
        chat_id=From,
        chat_title=f"{first_name}'s family" if first_name else "",
    )

    try:
        async with DatabaseSession() as session:
            response = await CommandService(session).handle(command, context)
    except Exception as e:
        logger.exception(f"Error processing message: {e}")
        response = GENERIC_ERROR

    await send_chat_message(From, response)

    # Return empty TwiML response (we're sending messages via API)
    return empty_twiml()
