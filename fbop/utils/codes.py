"""Short human-typeable codes for invites and kid device pairing."""

import secrets

# No 0/O, 1/I/L, U/V: easy to read aloud and to type
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTWXYZ23456789"
DEFAULT_CODE_LENGTH = 8


def generate_code(length: int = DEFAULT_CODE_LENGTH, alphabet: str = CODE_ALPHABET) -> str:
    """Generate a random code of ``length`` symbols drawn uniformly from ``alphabet``."""
    if length <= 0:
        raise ValueError("Code length must be positive")
    if not alphabet:
        raise ValueError("Alphabet must not be empty")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def normalize_code(raw: str) -> str:
    """Canonical form of a typed or scanned code."""
    return raw.strip().upper()
