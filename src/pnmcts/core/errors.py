"""Exceptions raised by the search engine."""


class PnmctsError(Exception):
    """Base exception for all engine errors."""

    pass


class ContractViolationError(PnmctsError):
    """Raised when the game (or a hook) breaks the game-state contract.

    Continuing after such an error would corrupt tree statistics, so it is
    never caught inside the engine.
    """

    pass


class SearchConfigError(PnmctsError, ValueError):
    """Raised when a search parameter is out of range.

    Attributes:
        field: Name of the offending configuration field.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class NoLegalMovesError(PnmctsError):
    """Raised when a search is requested on a terminal position."""

    pass


class EmptySearchError(PnmctsError):
    """Raised when a final move is requested before any child was expanded."""

    pass
