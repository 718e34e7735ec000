import hashlib

from utils.formatter_utils import bytes_to_hex

DIGEST_SIZE_BYTES = 32


def blake2_256(data: bytes) -> bytes:
    """
    Computes the 256-bit blake2b digest used by Substrate for call and code hashes.
    """
    return hashlib.blake2b(data, digest_size=DIGEST_SIZE_BYTES).digest()


def blake2_256_hex(data: bytes) -> str:
    return bytes_to_hex(blake2_256(data))
