"""
Parsers for free-form chat input.

Supports:
- Trade offers: "inv#123 987654321" (inventory id, then recipient id)
- Card definitions: "Flame Dragon | epic | 8" (name, rarity, coins per hour)
- Callback data: "trade_accept:42" -> ("trade_accept", "42")
"""

import re
from dataclasses import dataclass

from packvault.models.errors import ValidationError
from packvault.models.rarity import DEFAULT_POLICY, RarityPolicy

TRADE_PREFIX = "inv#"

_TRADE_PATTERN = re.compile(r"^inv#(\S+)\s+(?:to\s+)?(\S+)\s*$", re.IGNORECASE)

TRADE_USAGE = "Format: inv#<id> <recipient id>, e.g. inv#123 987654321"
CARD_USAGE = "Format: Name | rarity | coins_per_hour, e.g. Flame Dragon | epic | 8"


@dataclass(frozen=True, slots=True)
class TradeProposal:
    inventory_id: int
    recipient_id: int


@dataclass(frozen=True, slots=True)
class CardDefinition:
    name: str
    rarity: str
    coins_per_hour: int


def is_trade_proposal(text: str) -> bool:
    return text.strip().lower().startswith(TRADE_PREFIX)


def is_card_definition(text: str) -> bool:
    return "|" in text


def parse_trade_proposal(text: str) -> TradeProposal:
    """
    Parse "inv#<id> <recipient>".

    Raises:
        ValidationError: Missing parts or non-numeric ids.
    """
    match = _TRADE_PATTERN.match(text.strip())
    if not match:
        raise ValidationError(TRADE_USAGE)

    raw_inventory, raw_recipient = match.groups()
    try:
        return TradeProposal(inventory_id=int(raw_inventory), recipient_id=int(raw_recipient))
    except ValueError:
        raise ValidationError(TRADE_USAGE) from None


def parse_card_definition(text: str, policy: RarityPolicy = DEFAULT_POLICY) -> CardDefinition:
    """
    Parse "Name | rarity | coins_per_hour".

    The rarity must be one of the policy's tiers; income must be a
    non-negative integer.
    """
    parts = [p.strip() for p in text.split("|")]
    if len(parts) != 3 or not parts[0]:
        raise ValidationError(CARD_USAGE)

    name, raw_rarity, raw_coins = parts

    tier = policy.get(raw_rarity)
    if tier is None:
        allowed = ", ".join(policy.names)
        raise ValidationError(f"Unknown rarity '{raw_rarity}'. Use one of: {allowed}")

    try:
        coins = int(raw_coins)
    except ValueError:
        raise ValidationError(CARD_USAGE) from None
    if coins < 0:
        raise ValidationError("coins_per_hour cannot be negative")

    return CardDefinition(name=name, rarity=tier.name, coins_per_hour=coins)


def parse_callback(data: str) -> tuple[str, str | None]:
    """Split callback data into (action, payload)."""
    action, sep, payload = data.partition(":")
    return action.strip(), (payload.strip() if sep else None)


def parse_id(raw: str | None) -> int:
    """Numeric id from a callback payload."""
    if raw is None:
        raise ValidationError("Missing id")
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"Invalid id '{raw}'") from None
