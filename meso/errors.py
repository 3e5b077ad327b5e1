"""Exception taxonomy shared by the codecs, the providers and the store.

Decoding problems are ``DecodeError`` subclasses. Anything that goes wrong
while fetching is a ``FetchError``: either the transport failed
(``NetworkError``) or the payload could not be decoded (``DecodeFailure``,
which keeps the underlying ``DecodeError`` on ``.error``).
"""

from __future__ import annotations


class MesoError(Exception):
    pass


# ---------- Decoding ----------
class DecodeError(MesoError):
    pass


class MalformedPayload(DecodeError):
    def __init__(self, detail: str):
        super().__init__(f"malformed payload: {detail}")
        self.detail = detail


class UnknownCategory(DecodeError):
    def __init__(self, dn: int):
        super().__init__(f"unknown categorical risk code: {dn}")
        self.dn = dn


class MissingField(DecodeError):
    def __init__(self, field: str):
        super().__init__(f"missing field: {field}")
        self.field = field


# ---------- Fetching ----------
class FetchError(MesoError):
    pass


class NetworkError(FetchError):
    def __init__(self, detail: str):
        super().__init__(f"network error: {detail}")
        self.detail = detail


class DecodeFailure(FetchError):
    def __init__(self, error: DecodeError):
        super().__init__(f"decode error: {error}")
        self.error = error

    @property
    def detail(self) -> str:
        return str(self.error)


class SlotTransitionError(MesoError):
    """Raised when a terminal fetch slot is asked to change state."""
