"""OAuth PKCE and anti-forgery state helpers."""

from __future__ import annotations

import base64
import hashlib
import secrets
from collections.abc import Callable
from dataclasses import dataclass

type RandomBytes = Callable[[int], bytes]

# 64 random bytes encode to 86 unreserved characters, inside RFC 7636's 43-128 range.
VERIFIER_BYTES = 64
STATE_BYTES = 32


@dataclass(frozen=True, slots=True)
class PkceTriple:
    verifier: str
    challenge: str
    csrf_state: str

    def __repr__(self) -> str:
        return f"PkceTriple(verifier='***', challenge={self.challenge!r}, csrf_state={self.csrf_state!r})"


class PkceGenerator:
    """Produce verifier/challenge pairs and independent state tokens.

    ``randbytes`` defaults to :func:`secrets.token_bytes`. Tests can pass a
    seeded source such as ``random.Random(7).randbytes`` to get reproducible
    output.
    """

    def __init__(self, randbytes: RandomBytes = secrets.token_bytes) -> None:
        self._randbytes = randbytes

    def generate(self) -> PkceTriple:
        verifier = _urlsafe(self._randbytes(VERIFIER_BYTES))
        csrf_state = _urlsafe(self._randbytes(STATE_BYTES))
        return PkceTriple(
            verifier=verifier,
            challenge=pkce_code_challenge(verifier),
            csrf_state=csrf_state,
        )


def generate_state() -> str:
    return secrets.token_urlsafe(STATE_BYTES)


def generate_pkce_verifier() -> str:
    return secrets.token_urlsafe(VERIFIER_BYTES)


def pkce_code_challenge(verifier: str) -> str:
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return _urlsafe(digest)


def _urlsafe(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")
