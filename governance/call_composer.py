from typing import Any

from constants.constants import (
    DISPATCH_WHITELISTED_CALL_WITH_PREIMAGE,
    GOVERNANCE_PROXY_TYPE,
    PROPOSE_CALL,
    PROXY_CALL,
    PROXY_PALLET,
    REFERENDA_PALLET,
    SUBMIT_CALL,
    TECHNICAL_COMMITTEE_PALLET,
    WHITELIST_CALL,
    WHITELIST_PALLET,
    WHITELISTED_CALLER_ORIGIN,
)
from governance.models import EncodedCall, GovernanceProposalPlan, ProposalConfig
from utils.logger_utils import get_logger

logger = get_logger("Call Composer")


class CallComposer(object):
    """
    Wraps an initial call into the full governance proposal.

    The steps run strictly in sequence because each consumes the hash or the
    encoding of an earlier one:

        whitelist_call            <- hash(initial)
        tech_comm_proposal        <- whitelist_call, len(whitelist_call)
        whitelist_dispatch        <- initial
        referenda_proposal        <- whitelist_dispatch
        proxy_tech_comm_proposal  <- tech_comm_proposal
        proxy_referenda_proposal  <- referenda_proposal

    The only I/O is the chain client's encoder; its failures surface as EncodeError.
    """

    def __init__(self, chain_client: Any, config: ProposalConfig):
        self.chain_client = chain_client
        self.config = config

    async def compose(self, initial_call: EncodedCall) -> GovernanceProposalPlan:
        _log_call("initial", initial_call)

        whitelist_call = await self._whitelist(initial_call)
        tech_comm_proposal = await self._tech_comm_propose(whitelist_call)
        whitelist_dispatch = await self._whitelist_dispatch(initial_call)
        referenda_proposal = await self._referenda_submit(whitelist_dispatch)
        proxy_tech_comm_proposal = await self._proxy("proxyTechCommProposal", tech_comm_proposal)
        proxy_referenda_proposal = await self._proxy("proxyReferendaProposal", referenda_proposal)

        return GovernanceProposalPlan(
            initial_call=initial_call,
            whitelist_call=whitelist_call,
            tech_comm_proposal=tech_comm_proposal,
            whitelist_dispatch=whitelist_dispatch,
            referenda_proposal=referenda_proposal,
            proxy_tech_comm_proposal=proxy_tech_comm_proposal,
            proxy_referenda_proposal=proxy_referenda_proposal,
        )

    async def _whitelist(self, initial_call: EncodedCall) -> EncodedCall:
        call = await self.chain_client.compose_call(
            WHITELIST_PALLET, WHITELIST_CALL, {"call_hash": initial_call.content_hash}
        )
        _log_call("whitelist", call)
        return call

    async def _tech_comm_propose(self, whitelist_call: EncodedCall) -> EncodedCall:
        # length_bound must be the exact encoded size of the proposal or the chain rejects the motion
        call = await self.chain_client.compose_call(
            TECHNICAL_COMMITTEE_PALLET,
            PROPOSE_CALL,
            {
                "threshold": self.config.tech_comm_threshold,
                "proposal": whitelist_call,
                "length_bound": whitelist_call.encoded_length,
            },
        )
        _log_call("techCommProposal", call)
        return call

    async def _whitelist_dispatch(self, initial_call: EncodedCall) -> EncodedCall:
        call = await self.chain_client.compose_call(
            WHITELIST_PALLET, DISPATCH_WHITELISTED_CALL_WITH_PREIMAGE, {"call": initial_call}
        )
        _log_call("whitelistDispatch", call)
        return call

    async def _referenda_submit(self, whitelist_dispatch: EncodedCall) -> EncodedCall:
        call = await self.chain_client.compose_call(
            REFERENDA_PALLET,
            SUBMIT_CALL,
            {
                "proposal_origin": WHITELISTED_CALLER_ORIGIN,
                "proposal": {"Inline": whitelist_dispatch.encoded_hex},
                "enactment_moment": {"After": self.config.referendum_delay},
            },
        )
        _log_call("referendaProposal", call)
        return call

    async def _proxy(self, label: str, inner_call: EncodedCall) -> EncodedCall:
        call = await self.chain_client.compose_call(
            PROXY_PALLET,
            PROXY_CALL,
            {
                "real": self.config.proxy_address,
                "force_proxy_type": GOVERNANCE_PROXY_TYPE,
                "call": inner_call,
            },
        )
        _log_call(label, call)
        return call


def _log_call(label: str, call: EncodedCall) -> None:
    logger.info(f"{label} call data: {call.encoded_hex}")
    logger.info(f"{label} call hash: {call.content_hash}")
