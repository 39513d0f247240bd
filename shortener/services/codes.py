import random
import string

ALPHABET = string.ascii_letters + string.digits
CODE_LENGTH = 6


def generate_short_code(existing=(), length: int = CODE_LENGTH) -> str:
    """Случайный код из [A-Za-z0-9]; перегенерируется целиком, пока совпадает с existing."""

    code = "".join(random.choices(ALPHABET, k=length))
    while code in existing:
        code = "".join(random.choices(ALPHABET, k=length))
    return code
