"""PKCE helpers."""

from oauthflow.auth.pkce import (
    PkceGenerator,
    PkceTriple,
    generate_pkce_verifier,
    generate_state,
    pkce_code_challenge,
)

__all__ = [
    "PkceGenerator",
    "PkceTriple",
    "generate_pkce_verifier",
    "generate_state",
    "pkce_code_challenge",
]
