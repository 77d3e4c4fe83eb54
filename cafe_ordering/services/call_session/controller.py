"""Conversation controller: drives one call turn at a time."""
import logging
from typing import Optional, Protocol

from pydantic import BaseModel

from cafe_ordering.core.config import settings
from cafe_ordering.db.models import Order
from cafe_ordering.services.agent.constants import (
    GREETING_MESSAGE,
    ORACLE_APOLOGY_MESSAGE,
    ORDER_REGISTERED_MESSAGE,
    REPEAT_PROMPT_MESSAGE,
    SYSTEM_ERROR_MESSAGE,
)
from cafe_ordering.services.agent.oracle import OracleClient, OracleFailure
from cafe_ordering.services.agent.stages import is_terminal
from cafe_ordering.services.agent.state import OrderState, OrderStatePatch
from cafe_ordering.services.call_session.registry import SessionRegistry
from cafe_ordering.services.menu.repository import MenuRepository
from cafe_ordering.services.notifications.dispatcher import NotificationDispatcher
from cafe_ordering.services.ordering.pricing import format_money
from cafe_ordering.services.ordering.reconciler import Reconciler
from cafe_ordering.services.persistence.orders import OrderDraft

logger = logging.getLogger(__name__)

CALLER_ROLE = "Cliente"
ASSISTANT_ROLE = "Asistente"


class OrderStore(Protocol):
    """Write side of the order database."""

    async def write_order(self, draft: OrderDraft) -> Order:
        ...


class TurnResponse(BaseModel):
    """What the voice transport should do after this turn."""

    utterance: str
    continue_call: bool = True
    next_prompt_timeout_seconds: Optional[int] = None
    order_id: Optional[int] = None


class ConversationController:
    """State machine driver for the phone ordering dialogue."""

    def __init__(
        self,
        registry: SessionRegistry,
        oracle: OracleClient,
        reconciler: Reconciler,
        menu_repository: MenuRepository,
        order_store: OrderStore,
        notifier: NotificationDispatcher,
    ):
        self.registry = registry
        self.oracle = oracle
        self.reconciler = reconciler
        self.menu_repository = menu_repository
        self.order_store = order_store
        self.notifier = notifier

    async def handle_turn(
        self, call_id: str, caller_phone: str, transcript: Optional[str] = None
    ) -> TurnResponse:
        """
        Process one turn of a call.

        Args:
            call_id: Twilio call SID
            caller_phone: Caller's phone number
            transcript: Transcribed speech, None when nothing was captured

        Returns:
            TurnResponse with the utterance and whether the call continues
        """
        state, created = await self.registry.get_or_create(call_id, caller_phone)
        if created:
            greeting = GREETING_MESSAGE.format(cafe_name=settings.cafe_name)
            await self.registry.save(state.with_turn(ASSISTANT_ROLE, greeting))
            logger.info(f"[CONTROLLER] CallSid: {call_id} - New call, greeting caller")
            return self._continue(greeting)

        if not transcript or not transcript.strip():
            logger.info(f"[CONTROLLER] CallSid: {call_id} - No speech captured, asking to repeat")
            return self._continue(REPEAT_PROMPT_MESSAGE)

        transcript = transcript.strip()
        logger.info("=" * 80)
        logger.info(f"[CONTROLLER] CallSid: {call_id} - Stage: {state.stage.value} - Transcript: '{transcript}'")

        menu = await self.menu_repository.get_menu()
        result = await self.oracle.query(transcript, state, menu)

        if isinstance(result, OracleFailure):
            logger.warning(
                f"[CONTROLLER] CallSid: {call_id} - Extractor failed after {result.attempts} attempt(s): "
                f"{result.reason}. Keeping stage {state.stage.value}"
            )
            await self.registry.update(
                call_id,
                OrderStatePatch(
                    pending_transcript=transcript,
                    transcript=[
                        *state.transcript,
                        f"{CALLER_ROLE}: {transcript}",
                        f"{ASSISTANT_ROLE}: {ORACLE_APOLOGY_MESSAGE}",
                    ],
                ),
            )
            return self._continue(ORACLE_APOLOGY_MESSAGE)

        new_state, utterance = self.reconciler.reconcile(state, result, menu)
        new_state = (
            new_state.apply(OrderStatePatch(pending_transcript=None))
            .with_turn(CALLER_ROLE, transcript)
            .with_turn(ASSISTANT_ROLE, utterance)
        )

        if await self.registry.get(call_id) is None:
            # The transport reported the call ended while the extractor was working
            logger.warning(f"[CONTROLLER] CallSid: {call_id} - Session ended during the turn, discarding result")
            return TurnResponse(utterance=utterance, continue_call=False)

        if is_terminal(new_state.stage):
            return await self._finalize(new_state, utterance)

        await self.registry.save(new_state)
        logger.info(
            f"[CONTROLLER] CallSid: {call_id} - Now at {new_state.stage.value}, "
            f"total ${format_money(new_state.total)}"
        )
        logger.info("=" * 80)
        return self._continue(utterance)

    async def abandon_call(self, call_id: str, reason: str) -> bool:
        """Drop the session of a call that ended before its order was finalized."""
        removed = await self.registry.delete(call_id)
        if removed:
            logger.info(f"[CONTROLLER] CallSid: {call_id} - Call abandoned ({reason}), order discarded")
        return removed

    async def _finalize(self, state: OrderState, utterance: str) -> TurnResponse:
        """Write the order, notify bar and kitchen and end the call."""
        call_id = state.call_id
        draft = OrderDraft.from_state(state)
        try:
            order = await self.order_store.write_order(draft)
        except Exception as e:
            logger.error(
                f"[CONTROLLER] CallSid: {call_id} - Failed to write order: {type(e).__name__}: {e}",
                exc_info=True,
            )
            await self.registry.delete(call_id)
            return TurnResponse(utterance=SYSTEM_ERROR_MESSAGE, continue_call=False)

        try:
            await self.notifier.dispatch(order.id, state.customer_name, state)
        except Exception as e:
            logger.error(
                f"[CONTROLLER] CallSid: {call_id} - Notification dispatch failed for order #{order.id}: {e}",
                exc_info=True,
            )

        await self.registry.delete(call_id)
        closing = ORDER_REGISTERED_MESSAGE.format(order_id=order.id, cafe_name=settings.cafe_name)
        logger.info(f"[CONTROLLER] CallSid: {call_id} - Order #{order.id} finalized for {state.customer_name}")
        logger.info(f"[CONTROLLER] Order #{order.id}:\n{state.get_order_summary()}")
        logger.debug(f"[CONTROLLER] CallSid: {call_id} - Transcript:\n{state.get_transcript_text()}")
        logger.info("=" * 80)
        return TurnResponse(utterance=f"{utterance} {closing}", continue_call=False, order_id=order.id)

    @staticmethod
    def _continue(utterance: str) -> TurnResponse:
        return TurnResponse(
            utterance=utterance,
            continue_call=True,
            next_prompt_timeout_seconds=settings.gather_timeout_seconds,
        )
