"""Money helpers and the extras price table."""
import logging
import re
import unicodedata
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Mapping, Optional, Union

from cafe_ordering.services.agent.constants import DEFAULT_EXTRAS
from cafe_ordering.services.ordering.models import Customization

logger = logging.getLogger(__name__)

_CENTS = Decimal("0.01")


def round_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Round to cents, half away from zero."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(_CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Union[Decimal, float, int, str]) -> str:
    """Format an amount as "3.50"."""
    return f"{round_money(value):.2f}"


def slugify(name: str) -> str:
    """Stable identifier for a customization name ("Leche de Avena" -> "leche-de-avena")."""
    normalized = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    return re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")


class ExtrasPriceTable:
    """Fixed, case-insensitive price table for customizations."""

    def __init__(self, prices: Optional[Mapping[str, float]] = None):
        prices = DEFAULT_EXTRAS if prices is None else prices
        self._entries: Dict[str, Customization] = {
            name.strip().lower(): Customization(id=slugify(name), display_name=name, price=price)
            for name, price in prices.items()
        }

    def __contains__(self, name: str) -> bool:
        return name.strip().lower() in self._entries

    def lookup(self, name: str) -> Customization:
        """Return the priced customization for ``name``.

        Unknown names are kept with a zero price so the caller's request still
        reaches the bar, but they never change the total.
        """
        key = name.strip().lower()
        entry = self._entries.get(key)
        if entry is not None:
            return entry.model_copy()
        logger.warning(f"[PRICING] Unknown customization '{name}', pricing at 0.00")
        return Customization(id=slugify(name), display_name=name.strip(), price=0.0)

    def as_text(self) -> str:
        """Price table formatted for the LLM prompt."""
        return "\n".join(
            f"  - {entry.display_name} ${format_money(entry.price)}"
            for entry in self._entries.values()
        )
