"""Error types raised by the query layer."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional


class _DefaultMessageError(Exception):
    """Exception whose message falls back to a fixed default."""

    default_message = ""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(self.default_message if message is None else message)


class RecordNotFoundError(_DefaultMessageError, LookupError):
    """A query for a single record matched nothing."""

    default_message = "record not found"


class InvalidSQLError(_DefaultMessageError, ValueError):
    """The SQL given to a query is not valid."""

    default_message = "invalid SQL"


class InvalidTransactionError(_DefaultMessageError):
    """Commit or rollback was requested outside a transaction."""

    default_message = "no valid transaction"


class CantStartTransactionError(_DefaultMessageError):
    """A transaction could not be started."""

    default_message = "can't start transaction"


class UnaddressableError(_DefaultMessageError):
    """A value that cannot be written to was used as a destination."""

    default_message = "using unaddressable value"


class Errors(Exception):
    """An ordered collection of distinct errors that is itself an error."""

    def __init__(self, errors: Iterable[BaseException] = ()) -> None:
        self._errors: List[BaseException] = list(errors)
        super().__init__(*self._errors)

    def add(self, *args: Optional[BaseException]) -> "Errors":
        """Return a new collection with the given errors appended.

        ``None`` is skipped, nested collections are flattened and errors
        already present are not added twice.
        """
        collected = list(self._errors)

        def _extend(items: Iterable[Optional[BaseException]]) -> None:
            for err in items:
                if err is None:
                    continue
                if isinstance(err, Errors):
                    _extend(list(err))
                elif not any(err == existing for existing in collected):
                    collected.append(err)

        _extend(args)
        return Errors(collected)

    def get_errors(self) -> List[BaseException]:
        """Return the collected errors as a list."""
        return list(self._errors)

    def __str__(self) -> str:
        return "; ".join(str(err) for err in self._errors)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self._errors)

    def __len__(self) -> int:
        return len(self._errors)


def is_record_not_found_error(err: Optional[BaseException]) -> bool:
    """Tell whether ``err`` is, or contains, a record-not-found error."""
    if isinstance(err, Errors):
        if any(isinstance(item, RecordNotFoundError) for item in err):
            return True
    return isinstance(err, RecordNotFoundError)