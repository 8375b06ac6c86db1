"""Token ledger contract and the in-memory reference ledger."""

from mintgate.token.ledger import InMemoryTokenLedger, TokenLedger

__all__ = ["InMemoryTokenLedger", "TokenLedger"]
