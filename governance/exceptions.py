class GovernanceError(Exception):
    """Base class for every failure raised while building or submitting a proposal."""


class UsageError(GovernanceError):
    """Bad or missing command line arguments or environment."""


class UnknownProposalTypeError(UsageError):
    def __init__(self, proposal_type: str):
        super().__init__(f"unknown proposal type: {proposal_type}")
        self.proposal_type = proposal_type


class SigningKeyError(UsageError):
    """The signing key is missing or not a valid 32-byte hex private key."""


class NodeConnectionError(GovernanceError):
    """Timeout or node-level failure while connecting."""


class FetchError(GovernanceError):
    """Remote code download failed."""


class EncodeError(GovernanceError):
    """The chain encoder rejected a call."""


class DecodeError(GovernanceError):
    """The call payload could not be decoded into a call."""


class SubmissionFailure(GovernanceError):
    """The chain rejected or errored a broadcast extrinsic."""
