# src/scouting/errors.py
# Each error carries the HTTP status the API layer answers with.


class ScoutingError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(ScoutingError):
    """Caller left out something required (usually the username)."""
    status_code = 400


class Forbidden(ScoutingError):
    """The claim button is held by a different scout."""
    status_code = 403


class NotFound(ScoutingError):
    status_code = 404


class Conflict(ScoutingError):
    """The claim kept changing under us; the caller should try again."""
    status_code = 409


class StoreError(ScoutingError):
    """A read or write against the document store failed."""
    status_code = 500
