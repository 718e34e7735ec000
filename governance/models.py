from enum import Enum
from typing import Any, Iterator, Optional, Tuple

from eth_utils import is_hex_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

from utils.formatter_utils import bytes_to_hex
from utils.hash_utils import blake2_256_hex


class EncodedCall(BaseModel):
    """
    A single on-chain call in its canonical encoding.

    `native` carries the chain client's own call object so the call can be nested
    into other calls or signed without decoding it again. It takes no part in
    serialisation.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    call_module: str
    call_function: str
    encoded_bytes: bytes
    native: Any = Field(default=None, exclude=True, repr=False)

    @property
    def name(self) -> str:
        return f"{self.call_module}.{self.call_function}"

    @property
    def content_hash(self) -> str:
        return blake2_256_hex(self.encoded_bytes)

    @property
    def encoded_hex(self) -> str:
        return bytes_to_hex(self.encoded_bytes)

    @property
    def encoded_length(self) -> int:
        return len(self.encoded_bytes)


class ProposalConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    tech_comm_threshold: int = Field(gt=0, description="Technical committee approval threshold")
    referendum_delay: int = Field(ge=0, description="Enactment delay in blocks")
    proxy_address: str = Field(description="Account the Governance proxy acts on behalf of")

    @field_validator("proxy_address")
    @classmethod
    def validate_proxy_address(cls, v: str) -> str:
        if not is_hex_address(v):
            raise ValueError(f"proxy address must be a 20-byte hex account, got {v}")
        return to_checksum_address(v)


class GovernanceProposalPlan(BaseModel):
    model_config = ConfigDict(frozen=True)

    initial_call: EncodedCall
    whitelist_call: EncodedCall
    tech_comm_proposal: EncodedCall
    whitelist_dispatch: EncodedCall
    referenda_proposal: EncodedCall
    proxy_tech_comm_proposal: EncodedCall
    proxy_referenda_proposal: EncodedCall

    def ordered_calls(self) -> Iterator[Tuple[str, EncodedCall]]:
        """Yields (label, call) pairs in the order the calls were composed."""
        for label, field_name in PLAN_CALL_LABELS:
            yield label, getattr(self, field_name)


PLAN_CALL_LABELS = (
    ("initial", "initial_call"),
    ("whitelist", "whitelist_call"),
    ("techCommProposal", "tech_comm_proposal"),
    ("whitelistDispatch", "whitelist_dispatch"),
    ("referendaProposal", "referenda_proposal"),
    ("proxyTechCommProposal", "proxy_tech_comm_proposal"),
    ("proxyReferendaProposal", "proxy_referenda_proposal"),
)


class TransactionStatus(str, Enum):
    FUTURE = "future"
    READY = "ready"
    BROADCAST = "broadcast"
    IN_BLOCK = "inBlock"
    RETRACTED = "retracted"
    FINALITY_TIMEOUT = "finalityTimeout"
    FINALIZED = "finalized"
    USURPED = "usurped"
    DROPPED = "dropped"
    INVALID = "invalid"
    ERROR = "error"

    @property
    def is_included(self) -> bool:
        return self in (TransactionStatus.IN_BLOCK, TransactionStatus.FINALIZED)

    @property
    def is_failure(self) -> bool:
        return self in (
            TransactionStatus.ERROR,
            TransactionStatus.DROPPED,
            TransactionStatus.INVALID,
            TransactionStatus.USURPED,
        )

    @property
    def is_terminal(self) -> bool:
        return self.is_included or self.is_failure


class StatusUpdate(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: TransactionStatus
    block_hash: Optional[str] = None
    error: Optional[str] = None


class FinalityState(str, Enum):
    IN_BLOCK = "inBlock"
    FINALIZED = "finalized"


class SubmissionOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    call_name: str
    block_hash: str
    finality_state: FinalityState
    explorer_url: Optional[str] = None
