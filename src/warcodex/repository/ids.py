"""Document id generation."""

from __future__ import annotations

import secrets
import string

ID_ALPHABET = string.ascii_letters + string.digits
ID_LENGTH = 20


def generate_id() -> str:
    """Return a random 20 character alphanumeric id."""

    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
