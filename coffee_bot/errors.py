"""
Exception types raised by the coffee bot core.

Routes translate these into HTTP errors; the core never returns partial state
when one of them is raised.
"""


class CoffeeBotError(Exception):
    """Base class for coffee bot errors."""


class MenuSourceError(CoffeeBotError):
    """The menu source could not be read."""


class OracleError(CoffeeBotError):
    """The language-understanding oracle could not be reached."""


class OracleResponseError(OracleError):
    """The oracle replied, but no structured payload could be recovered."""

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class LedgerError(CoffeeBotError):
    """The order ledger rejected a read or write."""


class LedgerRowNotFound(LedgerError):
    """A status update addressed a row that does not exist."""
