"""Generation of database passwords."""

import secrets
import string

PASSWORD_ALPHABET = (
    string.ascii_lowercase + "%()$#" + string.ascii_uppercase + string.digits
)


def generate_password(length: int = 26) -> str:
    """
    Generate a random password from a fixed printable alphabet.

    Uses the operating system's cryptographically strong source, so no
    seeding is involved.

    Args:
        length: Number of characters

    Returns:
        The generated password

    Raises:
        ValueError: If length is less than 1
    """
    if length < 1:
        raise ValueError(f"password length must be positive, got {length}")
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
