"""Client for the LLM-backed item/intent extractor."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from openai import AsyncOpenAI
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from cafe_ordering.core.config import settings
from cafe_ordering.services.agent.prompt import get_order_snapshot, get_system_prompt, get_user_prompt
from cafe_ordering.services.agent.retry import RetryPolicy
from cafe_ordering.services.agent.stages import OrderStage
from cafe_ordering.services.agent.state import OrderState
from cafe_ordering.services.menu.base import Menu
from cafe_ordering.services.menu.repository import format_menu_text
from cafe_ordering.services.ordering.models import PreparationArea
from cafe_ordering.services.ordering.pricing import ExtrasPriceTable

logger = logging.getLogger(__name__)

_AREA_ALIASES = {
    "bar": PreparationArea.BAR,
    "barra": PreparationArea.BAR,
    "kitchen": PreparationArea.KITCHEN,
    "cocina": PreparationArea.KITCHEN,
}


class OracleItem(BaseModel):
    """Item as proposed by the extractor. Checked against the menu later."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str
    preparation_area: Optional[PreparationArea] = None
    customizations: List[str] = []

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("item name is empty")
        return value

    @field_validator("preparation_area", mode="before")
    @classmethod
    def _normalize_area(cls, value: Any) -> Optional[PreparationArea]:
        if isinstance(value, str):
            return _AREA_ALIASES.get(value.strip().lower())
        return value

    @field_validator("customizations", mode="before")
    @classmethod
    def _normalize_customizations(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            value = [value]
        return [str(v).strip() for v in value if v and str(v).strip()]


class OracleResult(BaseModel):
    """Validated extractor output for one turn."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    next_stage: OrderStage
    items: List[OracleItem]
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    response_text: str

    @field_validator("next_stage", mode="before")
    @classmethod
    def _normalize_stage(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_validator("items", mode="before")
    @classmethod
    def _drop_unnamed_items(cls, value: Any) -> Any:
        # A single bad entry must not cost the caller the whole turn
        if not isinstance(value, list):
            return value
        kept = []
        for entry in value:
            if isinstance(entry, OracleItem):
                kept.append(entry)
                continue
            name = entry.get("name") if isinstance(entry, dict) else None
            if isinstance(name, str) and name.strip():
                kept.append(entry)
            else:
                logger.warning(f"[ORACLE] Dropping proposed item without a usable name: {entry!r}")
        return kept

    @field_validator("customer_name", "customer_phone", mode="before")
    @classmethod
    def _numbers_to_text(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("response_text")
    @classmethod
    def _response_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("responseText is empty")
        return value


class OracleFailure(BaseModel):
    """The extractor could not produce a usable result this turn."""

    reason: str
    transient: bool = False
    attempts: int = 1


class OracleResponseError(Exception):
    """Response body is empty or does not match the expected shape."""


def parse_oracle_response(content: Optional[str]) -> OracleResult:
    """Parse and validate a raw JSON body from the extractor."""
    if not content or not content.strip():
        raise OracleResponseError("empty response body")
    try:
        return OracleResult.model_validate_json(content)
    except ValidationError as e:
        raise OracleResponseError(f"malformed response: {e.error_count()} validation error(s)") from e


class OracleClient:
    """Queries the extractor with bounded retries; never raises to the caller."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        retry_policy: Optional[RetryPolicy] = None,
        extras: Optional[ExtrasPriceTable] = None,
        model: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        # SDK-level retries are disabled; the retry policy owns the attempt ceiling.
        self.client = client or AsyncOpenAI(api_key=settings.openai_api_key, max_retries=0)
        self.retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self.extras = extras or ExtrasPriceTable()
        self.model = model or settings.openai_model
        self.timeout_seconds = timeout_seconds or settings.oracle_timeout_seconds
        self._sleep = sleep

    def build_request(self, transcript: str, state: OrderState, menu: Menu) -> Dict[str, Any]:
        """Assemble system instructions, menu and order snapshots and the transcript."""
        return {
            "systemInstructions": get_system_prompt(
                settings.cafe_name, self.extras.as_text(), settings.oracle_response_word_limit
            ),
            "menuSnapshot": format_menu_text(menu),
            "orderSnapshot": get_order_snapshot(state),
            "transcript": transcript,
        }

    async def query(
        self, transcript: str, state: OrderState, menu: Menu
    ) -> Union[OracleResult, OracleFailure]:
        """Interpret ``transcript`` in the context of ``state``."""
        request = self.build_request(transcript, state, menu)
        messages = [
            {"role": "system", "content": request["systemInstructions"]},
            {
                "role": "user",
                "content": get_user_prompt(
                    request["menuSnapshot"], request["orderSnapshot"], request["transcript"]
                ),
            },
        ]

        logger.info(f"[ORACLE] CallSid: {state.call_id} - Stage: {state.stage.value} - Transcript: '{transcript}'")

        attempt = 0
        while True:
            attempt += 1
            try:
                content = await asyncio.wait_for(self._complete(messages), timeout=self.timeout_seconds)
                result = parse_oracle_response(content)
                logger.info(
                    f"[ORACLE] CallSid: {state.call_id} - Attempt {attempt} ok - "
                    f"nextStage: {result.next_stage.value}, items: {[item.name for item in result.items]}"
                )
                return result
            except OracleResponseError as e:
                logger.warning(f"[ORACLE] CallSid: {state.call_id} - Non-retryable response error: {e}")
                return OracleFailure(reason=str(e), transient=False, attempts=attempt)
            except Exception as e:
                reason = f"{type(e).__name__}: {e}"
                if not self.retry_policy.is_transient(e):
                    logger.error(f"[ORACLE] CallSid: {state.call_id} - Non-retryable error: {reason}")
                    return OracleFailure(reason=reason, transient=False, attempts=attempt)
                if attempt >= self.retry_policy.max_attempts:
                    logger.error(
                        f"[ORACLE] CallSid: {state.call_id} - Giving up after {attempt} attempts. Last error: {reason}"
                    )
                    return OracleFailure(reason=reason, transient=True, attempts=attempt)
                delay = self.retry_policy.delay_for(attempt)
                logger.warning(
                    f"[ORACLE] CallSid: {state.call_id} - Attempt {attempt} failed ({reason}), retrying in {delay:.2f}s"
                )
                await self._sleep(delay)

    async def _complete(self, messages: List[Dict[str, str]]) -> Optional[str]:
        """Single chat completion call in JSON mode."""
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=settings.oracle_temperature,
            response_format={"type": "json_object"},
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
