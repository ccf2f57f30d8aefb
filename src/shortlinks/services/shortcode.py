import random
import string

ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase


def generate_short_code(length: int = 6) -> str:
    """
    Generate a random short code of specified length.

    Args:
        length: Length of the short code to generate, defaults to 6

    Returns:
        A string of digits and mixed case letters

    Raises:
        ValueError: If length is not positive
    """
    if length <= 0:
        raise ValueError(f"length must be positive, got {length}")
    return "".join(random.choice(ALPHABET) for _ in range(length))


def pick_code_length(min_length: int = 6, max_length: int = 8) -> int:
    """Pick a code length in the inclusive range [min_length, max_length]."""
    return random.randint(min_length, max_length)
