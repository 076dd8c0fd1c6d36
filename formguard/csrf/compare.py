import hmac


def _as_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    return value.encode("utf-8")


def tokens_equal(first: str | None, second: str | None) -> bool:
    """Compare two tokens in time that depends only on the longer one.

    Inputs of different length are padded to a common length and still
    compared in full, so a mismatch never returns early. A missing token
    never equals anything.
    """
    left = _as_bytes(first)
    right = _as_bytes(second)
    width = max(len(left), len(right))
    same_content = hmac.compare_digest(left.ljust(width, b"\0"), right.ljust(width, b"\0"))
    same_length = len(left) == len(right)
    present = first is not None and second is not None and width > 0
    return same_content & same_length & present
