"""Custom exceptions for the stat ingestion pipeline.

The pipeline separates three kinds of trouble:

1. Soft skips: an unmatched player, a degenerate game, an all-zero stat line.
   These are expected noise in upstream feeds. They are COUNTED in the import
   result and never raised.
2. Validation errors: the batch itself is malformed (missing game key, bad
   round or position). The operation is aborted before anything is written.
3. Transport/storage errors: the provider or the database is unavailable.
   These propagate to whoever triggered the import.

For beginners: exceptions are Python's way of handling errors gracefully.
Custom exception types let callers catch exactly the failure they can handle
(for example the API turns StatValidationError into an HTTP 400).

Inheritance Pattern:
Validation problems inherit from ValueError, lookups from LookupError and
provider failures from RuntimeError, so code can catch either the specific
type or the broader built-in.
"""


class StatValidationError(ValueError):
    """Raised when a stat batch fails validation.

    Common causes:
    - A record without a game key
    - A round outside Wildcard/Divisional/Conference/SuperBowl
    - An unknown position code
    - Negative counting stats (other than yardage)

    The message names the offending record index (or CSV row) so the
    commissioner can fix the source file.
    """

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class CSVParsingError(ValueError):
    """Raised when a stats CSV cannot be read at all.

    Common causes:
    - Empty or truncated uploads
    - Unbalanced quotes that swallow the rest of the file
    - Files that are not delimited text
    """


class MissingColumnsError(ValueError):
    """Raised when a stats CSV lacks a required header (e.g. game_key)."""


class ProviderError(RuntimeError):
    """Raised when an external stats provider cannot be reached or answers badly.

    Raised only after the client's retries are exhausted. Nothing has been
    written when this surfaces from a fetch, because fetchers normalize the
    whole batch before the importer starts.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PlayerNotFoundError(LookupError):
    """Raised when an admin action targets a player id that does not exist."""


class StatLineNotFoundError(LookupError):
    """Raised when an admin action targets a stat row id that does not exist."""
