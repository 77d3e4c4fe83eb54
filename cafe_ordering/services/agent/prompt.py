"""Oracle prompt templates."""
import json
from typing import Any, Dict

from cafe_ordering.services.agent.stages import OrderStage
from cafe_ordering.services.agent.state import OrderState


def get_system_prompt(cafe_name: str, extras_text: str, word_limit: int) -> str:
    """Generate the system instructions for the extractor."""
    stages = ", ".join(stage.value for stage in OrderStage)
    return f"""You are the phone ordering assistant for {cafe_name}, a cafe.
You receive the caller's latest transcribed words, the menu and the current order.
Reply to the caller in Spanish (Mexico), warmly and briefly: at most {word_limit} words.

CONVERSATION STAGES: {stages}
- INITIAL_ORDER: the caller says what they want.
- CUSTOMIZATION: ask about extras for BAR items only (milk, syrups, extra shot...).
- UPSELL_FINAL: ask if they want anything else.
- CONFIRMATION: read back the order and ask the caller to confirm it.
  If the caller says the order is wrong, go back to INITIAL_ORDER or CUSTOMIZATION.
- IDENTIFICATION: ask for the caller's name if you do not have it yet.
- FINALIZED: the caller confirmed and gave their name. Say goodbye.
Stay in the same stage if you could not understand the caller.

Available extras for bar items (use these names exactly):
{extras_text}

Rules:
- "items" must always contain the FULL order so far, not only the new items.
- Use menu names exactly. Ignore anything that is not on the menu.
- Each item appears once. Never repeat an item name.
- Only bar items can have customizations.
- Fill customerName only when the caller says their name. Fill customerPhone only if
  the caller gives a different phone number.

You must output JSON with this structure:
{{
    "nextStage": "one of the stages above",
    "items": [
        {{"name": "menu item name", "preparationArea": "bar|kitchen", "customizations": ["extra name"]}}
    ],
    "customerName": "name or empty string",
    "customerPhone": "phone or empty string",
    "responseText": "what you say to the caller"
}}
Always output valid JSON."""


def get_order_snapshot(state: OrderState) -> Dict[str, Any]:
    """Current order as sent to the extractor."""
    return {
        "stage": state.stage.value,
        "items": [
            {
                "name": line.name,
                "preparationArea": line.preparation_area.value,
                "customizations": [c.display_name for c in line.customizations],
            }
            for line in state.items
        ],
        "customerName": state.customer_name if state.has_named_customer() else "",
        "customerPhone": state.customer_phone,
    }


def get_user_prompt(menu_text: str, order_snapshot: Dict[str, Any], transcript: str) -> str:
    """Generate user prompt with menu, order and transcript."""
    return f"""{menu_text}

CURRENT ORDER:
{json.dumps(order_snapshot, ensure_ascii=False, indent=2)}

Caller just said: "{transcript}"

Respond in the JSON format specified."""
