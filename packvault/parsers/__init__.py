from packvault.parsers.commands import (
    CARD_USAGE,
    TRADE_USAGE,
    CardDefinition,
    TradeProposal,
    is_card_definition,
    is_trade_proposal,
    parse_callback,
    parse_card_definition,
    parse_id,
    parse_trade_proposal,
)

__all__ = [
    "CARD_USAGE",
    "CardDefinition",
    "TRADE_USAGE",
    "TradeProposal",
    "is_card_definition",
    "is_trade_proposal",
    "parse_callback",
    "parse_card_definition",
    "parse_id",
    "parse_trade_proposal",
]
