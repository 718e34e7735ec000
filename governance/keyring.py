from eth_account import Account
from substrateinterface import Keypair, KeypairType

from constants.constants import PRIVATE_KEY_LENGTH_BYTES
from governance.exceptions import SigningKeyError
from utils.formatter_utils import hex_to_bytes
from utils.logger_utils import get_logger

logger = get_logger("Keyring")


def load_evm_keypair(private_key: str) -> Keypair:
    """
    Builds the ECDSA (Ethereum-style) signing keypair for the governance proxy account.

    Validation is purely local, so a malformed key fails before any connection
    to the node is attempted.

    Args:
        private_key: 32-byte private key as hex, with or without 0x.

    Raises:
        SigningKeyError: If the key is missing or malformed.
    """
    if not private_key:
        raise SigningKeyError("missing signing key")

    try:
        key_bytes = hex_to_bytes(private_key)
    except ValueError:
        raise SigningKeyError("signing key is not valid hex") from None

    if len(key_bytes) != PRIVATE_KEY_LENGTH_BYTES:
        raise SigningKeyError(
            f"signing key must be {PRIVATE_KEY_LENGTH_BYTES} bytes, got {len(key_bytes)}"
        )

    try:
        account = Account.from_key(key_bytes)
    except ValueError as e:
        raise SigningKeyError(f"invalid signing key: {e}") from None

    keypair = Keypair.create_from_private_key(key_bytes, crypto_type=KeypairType.ECDSA)

    logger.info(f"loaded EVM keyring for address: {account.address}")
    return keypair
