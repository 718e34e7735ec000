from abc import ABC, abstractmethod
from typing import Any, Dict, List, Sequence, Type

from config.configs import configs
from constants.constants import AUTHORIZE_UPGRADE_CALL, SYSTEM_PALLET
from governance.exceptions import DecodeError, UnknownProposalTypeError, UsageError
from governance.models import EncodedCall
from utils.fetch_utils import download
from utils.formatter_utils import hex_to_bytes, normalize_hex, to_kilobytes
from utils.hash_utils import blake2_256_hex
from utils.logger_utils import get_logger

logger = get_logger("Call Generators")


class CallGenerator(ABC):
    """
    Produces the initial call that the governance proposal wraps.

    Subclasses register under a proposal type in CALL_GENERATORS and describe
    their single positional argument for the usage text.
    """

    proposal_type: str = ""
    argument_name: str = ""
    description: str = ""
    example: str = ""

    @classmethod
    def from_args(cls, proposal_args: Sequence[str]) -> "CallGenerator":
        if not proposal_args or not proposal_args[0]:
            raise UsageError(f"{cls.proposal_type} requires a {cls.argument_name} argument")
        return cls(proposal_args[0])

    @abstractmethod
    async def generate(self, chain_client: Any) -> EncodedCall:
        pass


class RuntimeUpgradeCallGenerator(CallGenerator):
    proposal_type = "runtime-upgrade"
    argument_name = "code-uri"
    description = "submit runtime upgrade proposal using code from URL"
    example = "runtime-upgrade https://example.com/runtime.wasm"

    def __init__(self, code_uri: str, fetch_timeout: int = configs.fetch.timeout_seconds):
        self.code_uri = code_uri
        self.fetch_timeout = fetch_timeout

    async def generate(self, chain_client: Any) -> EncodedCall:
        code = await download(self.code_uri, timeout=self.fetch_timeout)
        logger.info(f"downloaded code({to_kilobytes(len(code))} KB)")

        code_hash = blake2_256_hex(code)
        logger.info(f"code hash: {code_hash}")

        return await chain_client.compose_call(SYSTEM_PALLET, AUTHORIZE_UPGRADE_CALL, {"code_hash": code_hash})


class RawCallGenerator(CallGenerator):
    proposal_type = "any"
    argument_name = "call-data"
    description = "submit proposal with raw call data (hex-encoded)"
    example = "any 0x..."

    def __init__(self, call_data: str):
        self.call_data = normalize_hex(call_data)

    async def generate(self, chain_client: Any) -> EncodedCall:
        logger.info(f"Using raw call data: {self.call_data}")
        try:
            call_bytes = hex_to_bytes(self.call_data)
        except ValueError as e:
            raise DecodeError(str(e)) from e
        return await chain_client.decode_call(call_bytes)


CALL_GENERATORS: Dict[str, Type[CallGenerator]] = {
    RuntimeUpgradeCallGenerator.proposal_type: RuntimeUpgradeCallGenerator,
    RawCallGenerator.proposal_type: RawCallGenerator,
}


def create_call_generator(proposal_type: str, proposal_args: Sequence[str]) -> CallGenerator:
    """
    Raises:
        UnknownProposalTypeError: If no generator is registered for proposal_type.
        UsageError: If the generator's argument is missing.
    """
    generator_cls = CALL_GENERATORS.get(proposal_type)
    if generator_cls is None:
        raise UnknownProposalTypeError(proposal_type)
    return generator_cls.from_args(proposal_args)


def format_proposal_types() -> List[str]:
    """Usage lines describing every registered proposal type."""
    lines = []
    for generator_cls in CALL_GENERATORS.values():
        signature = f"{generator_cls.proposal_type} <{generator_cls.argument_name}>"
        lines.append(f"  {signature:<28} - {generator_cls.description}")
        lines.append(f"  {'':<28}   example: {generator_cls.example}")
    return lines
