from eth_utils import add_0x_prefix, encode_hex, is_hex, to_bytes


def normalize_hex(hex_string: str) -> str:
    """
    Returns the hex string with a single lowercase 0x prefix.
    Accepts input with or without the prefix.
    """
    return add_0x_prefix(hex_string.strip())


def hex_to_bytes(hex_string: str) -> bytes:
    """
    Converts a hex string (with or without 0x) to bytes.

    Raises:
        ValueError: If the string is not valid hex.
    """
    normalized = normalize_hex(hex_string)
    if not is_hex(normalized):
        raise ValueError(f"Invalid hex string: {hex_string}")
    return to_bytes(hexstr=normalized)


def bytes_to_hex(data: bytes) -> str:
    return encode_hex(data)


def to_kilobytes(size_bytes: int) -> int:
    return round(size_bytes / 1024)
