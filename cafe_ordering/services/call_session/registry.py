"""In-memory registry of active call sessions."""
import asyncio
import logging
from typing import Dict, List, Optional, Tuple

from cafe_ordering.services.agent.state import OrderState, OrderStatePatch

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Maps call ids to their OrderState while the call is active.

    State lives only in process memory: a restart drops in-flight calls and the
    caller has to dial again. The lock guards dictionary access only and is
    never held while the extractor is being called.
    """

    def __init__(self):
        self._sessions: Dict[str, OrderState] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    async def get(self, call_id: str) -> Optional[OrderState]:
        """Get the state for an active call."""
        async with self._lock:
            return self._sessions.get(call_id)

    async def get_or_create(self, call_id: str, caller_phone: str) -> Tuple[OrderState, bool]:
        """Fetch the state for ``call_id``, creating it at INITIAL_ORDER on first contact.

        Returns:
            Tuple of (state, created)
        """
        async with self._lock:
            state = self._sessions.get(call_id)
            if state is not None:
                return state, False
            state = OrderState(call_id=call_id, caller_phone=caller_phone)
            self._sessions[call_id] = state
        logger.info(f"[SESSIONS] Created session - CallSid: {call_id}, Caller: {caller_phone}")
        return state, True

    async def update(self, call_id: str, patch: OrderStatePatch) -> Optional[OrderState]:
        """Apply ``patch`` to an active session. Returns None if the call is unknown."""
        async with self._lock:
            state = self._sessions.get(call_id)
            if state is None:
                return None
            state = state.apply(patch)
            self._sessions[call_id] = state
            return state

    async def save(self, state: OrderState) -> None:
        """Store ``state`` as the current state of its call."""
        async with self._lock:
            self._sessions[state.call_id] = state

    async def delete(self, call_id: str) -> bool:
        """Forget a call. Returns True if it was active."""
        async with self._lock:
            removed = self._sessions.pop(call_id, None) is not None
        if removed:
            logger.info(f"[SESSIONS] Deleted session - CallSid: {call_id}")
        return removed

    async def active_call_ids(self) -> List[str]:
        """Ids of all active calls."""
        async with self._lock:
            return list(self._sessions)
