"""Random opaque identifiers, unique against a caller-supplied exclusion set."""

import base64
import secrets
from collections.abc import Callable, Container

_ENCODERS: dict[str, Callable[[bytes], str]] = {
    "hex": lambda raw: raw.hex(),
    "base32": lambda raw: base64.b32encode(raw).decode("ascii").rstrip("=").lower(),
    "base64url": lambda raw: base64.urlsafe_b64encode(raw).decode("ascii").rstrip("="),
}

ENCODINGS = tuple(_ENCODERS)


def generate_token(
    length_bytes: int = 8,
    excluded: Container[str] = (),
    encoding: str = "hex",
) -> str:
    """Return a random token of ``length_bytes`` bytes that is not in ``excluded``.

    Membership is re-checked against ``excluded`` on every attempt, so a set
    that grows while tokens are being drawn is respected. There is no attempt
    cap: with the default 8 bytes a collision is already negligible.
    """
    if length_bytes < 1:
        raise ValueError(f"length_bytes must be positive, got {length_bytes}")
    try:
        encode = _ENCODERS[encoding]
    except KeyError:
        raise ValueError(f"Unsupported encoding: {encoding!r} (expected one of {', '.join(ENCODINGS)})") from None
    while True:
        token = encode(secrets.token_bytes(length_bytes))
        if token not in excluded:
            return token
