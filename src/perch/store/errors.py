"""Session store and codec error hierarchy."""

from perch.errors import PerchError


class StoreError(PerchError):
    """Base for all session store errors."""


class SessionNotFound(StoreError):  # noqa: N818
    """No session record exists for the requested id."""

    def __init__(self, session_id: str, message: str = "Session does not exist.") -> None:
        super().__init__(message)
        self.session_id = session_id


class SessionExpired(SessionNotFound):
    """The record exists but its ``expires_at`` has passed.

    Raised for records the backend has not yet swept.
    """

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id, "Session has expired.")


class BackendError(StoreError):
    """The backing store failed, timed out, or returned an unreadable item."""


class PartialRevocationError(BackendError):
    """A batch delete left some sessions in place after every retry.

    ``unprocessed`` holds the ids that were not removed; ``removed``
    counts the ones that were.
    """

    def __init__(self, username: str, unprocessed: list[str], removed: int) -> None:
        super().__init__(
            f"revoked {removed} session(s) for {username!r} but "
            f"{len(unprocessed)} could not be removed"
        )
        self.username = username
        self.unprocessed = unprocessed
        self.removed = removed


class CodecError(PerchError):
    """An attribute bag could not be decoded into a session record."""


class MissingField(CodecError):  # noqa: N818
    """A required attribute is absent or has the wrong underlying type."""

    def __init__(self, name: str) -> None:
        super().__init__(f"missing {name}")
        self.name = name


class InvalidField(CodecError):  # noqa: N818
    """An attribute is present but cannot be parsed."""

    def __init__(self, name: str, value: object) -> None:
        super().__init__(f"invalid {name}: {value!r}")
        self.name = name
        self.value = value
