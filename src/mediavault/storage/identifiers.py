import secrets

IDENTIFIER_BYTES = 16  # 128 bits


def generate_identifier() -> str:
    """Return a fresh 32-character lowercase hex token from the OS CSPRNG."""
    return secrets.token_hex(IDENTIFIER_BYTES)
