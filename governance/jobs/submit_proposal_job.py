from typing import Any, List, Optional

from chain.substrate_client import SubstrateChainClient
from constants.constants import CONNECT_TIMEOUT_SECONDS
from governance.call_composer import CallComposer
from governance.call_generators import CallGenerator
from governance.jobs.async_base_job import AsyncBaseJob
from governance.models import ProposalConfig, SubmissionOutcome
from governance.transaction_submitter import TransactionSubmitter
from utils.logger_utils import get_logger

logger = get_logger("Submit Proposal Job")


class SubmitProposalJob(AsyncBaseJob):
    """
    Runs one governance proposal end to end:

        connect -> generate -> compose -> submit(proxy tech-comm) -> submit(proxy referenda) -> disconnect

    The two submissions are strictly sequential. The connection is closed on every
    exit path once it has been established.
    """

    def __init__(
        self,
        node_endpoint: str,
        keypair: Any,
        call_generator: CallGenerator,
        proposal_config: ProposalConfig,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        chain_client: Optional[Any] = None,
    ):
        self.node_endpoint = node_endpoint
        self.keypair = keypair
        self.call_generator = call_generator
        self.proposal_config = proposal_config
        self.chain_client = chain_client or SubstrateChainClient(node_endpoint, connect_timeout=connect_timeout)
        self.outcomes: List[SubmissionOutcome] = []

    async def _start(self):
        await self.chain_client.connect()

    async def _export(self) -> List[SubmissionOutcome]:
        initial_call = await self.call_generator.generate(self.chain_client)
        plan = await CallComposer(self.chain_client, self.proposal_config).compose(initial_call)

        submitter = TransactionSubmitter(self.chain_client, self.node_endpoint)
        for call in (plan.proxy_tech_comm_proposal, plan.proxy_referenda_proposal):
            self.outcomes.append(await submitter.submit(self.keypair, call))
        return self.outcomes

    async def _end(self):
        if not self.chain_client.connected:
            return
        await self.chain_client.close()
        logger.info("disconnected from node")
