"""Domain exceptions for the settlement engine and the bet store."""

from __future__ import annotations


class BetLedgerError(Exception):
    """Base class for all business-rule errors raised by the ledger."""


class UnrecognizedOutcomeError(BetLedgerError, ValueError):
    """Settlement was requested with an outcome other than WIN, LOSE or VOID."""

    def __init__(self, outcome: object) -> None:
        self.outcome = outcome
        super().__init__(
            f"Unrecognized settlement outcome {outcome!r}: expected WIN, LOSE or VOID"
        )


class AlreadySettledError(BetLedgerError):
    """A bet that already carries a terminal result was settled again."""

    def __init__(self, bet_id: int, result: str) -> None:
        self.bet_id = bet_id
        self.result = result
        super().__init__(f"Bet {bet_id} is already settled ({result})")


class BetNotFoundError(BetLedgerError, LookupError):
    def __init__(self, bet_id: int) -> None:
        self.bet_id = bet_id
        super().__init__(f"Bet {bet_id} not found")
