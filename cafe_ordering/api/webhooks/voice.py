"""Twilio voice webhook endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import Response

from cafe_ordering.core.config import settings
from cafe_ordering.core.dependencies import get_conversation_controller
from cafe_ordering.services.agent.constants import CALL_ENDED_STATUSES, SYSTEM_ERROR_MESSAGE
from cafe_ordering.services.call_session.controller import ConversationController, TurnResponse
from cafe_ordering.services.speech.tts import TwimlBuilder

router = APIRouter()
logger = logging.getLogger(__name__)

CONVERSATION_PATH = "/webhooks/voice/conversation"


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute URLs.

    Uses BASE_URL environment variable if set, otherwise constructs from request.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def render_twiml(turn: TurnResponse, action_url: str) -> str:
    """Render a turn response as TwiML."""
    builder = TwimlBuilder()
    if turn.continue_call:
        return builder.gather(turn.utterance, action_url, timeout=turn.next_prompt_timeout_seconds)
    return builder.hangup(turn.utterance)


@router.post("/voice/conversation")
async def handle_conversation_turn(
    request: Request,
    CallSid: str = Form(...),
    Caller: Optional[str] = Form(None),
    From: Optional[str] = Form(None),
    SpeechResult: Optional[str] = Form(None),
    controller: ConversationController = Depends(get_conversation_controller),
):
    """
    Handle one turn of a call.

    Twilio calls this when the call starts and again every time it gathers speech.
    """
    caller_phone = Caller or From or ""
    logger.info(
        f"[GATHER] Received turn - CallSid: {CallSid}, Caller: {caller_phone}, "
        f"SpeechResult length: {len(SpeechResult) if SpeechResult else 0}"
    )
    action_url = f"{get_base_url(request)}{CONVERSATION_PATH}"

    try:
        turn = await controller.handle_turn(CallSid, caller_phone, SpeechResult)
        twiml = render_twiml(turn, action_url)
        logger.info(
            f"[GATHER] Turn processed - CallSid: {CallSid}, continue: {turn.continue_call}, "
            f"TwiML length: {len(twiml)} bytes"
        )
        return Response(content=twiml, media_type="application/xml")

    except Exception as e:
        logger.error(
            f"[GATHER] Error processing turn - CallSid: {CallSid}, "
            f"SpeechResult: '{SpeechResult[:100] if SpeechResult else 'None'}', "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        await controller.abandon_call(CallSid, "error")
        error_twiml = TwimlBuilder().hangup(SYSTEM_ERROR_MESSAGE)
        return Response(content=error_twiml, media_type="application/xml")


@router.post("/voice/status")
async def handle_call_status(
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    controller: ConversationController = Depends(get_conversation_controller),
):
    """
    Handle call status updates from Twilio.

    A call that ends before its order is finalized loses its session.
    """
    logger.info(f"[CALL STATUS] Received status update - CallSid: {CallSid}, CallStatus: {CallStatus}")

    if CallStatus in CALL_ENDED_STATUSES:
        await controller.abandon_call(CallSid, CallStatus)
    else:
        logger.debug(
            f"[CALL STATUS] Status update received but no action needed - "
            f"CallSid: {CallSid}, CallStatus: {CallStatus}"
        )

    return Response(content="OK", media_type="text/plain")
