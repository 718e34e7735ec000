import asyncio
from typing import Any, Optional

from constants.constants import EXPLORER_URL_TEMPLATE
from governance.exceptions import SubmissionFailure
from governance.models import (
    EncodedCall,
    FinalityState,
    StatusUpdate,
    SubmissionOutcome,
    TransactionStatus,
)
from utils.logger_utils import get_logger

logger = get_logger("Transaction Submitter")


class SubmissionTracker(object):
    """
    State machine over the status stream of one extrinsic.

        future/ready/broadcast --> inBlock | finalized         resolve
                               --> error | dropped | invalid   reject
                                   | usurped
        retracted, finalityTimeout and the rest are logged only.

    The outcome is settled at most once. Updates arriving afterwards are discarded.
    """

    def __init__(self, call_name: str, node_endpoint: Optional[str] = None):
        self.call_name = call_name
        self.node_endpoint = node_endpoint
        self._settlement: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def settled(self) -> bool:
        return self._settlement.done()

    def on_status(self, update: StatusUpdate) -> bool:
        """
        Applies one status update. Returns True if this update settled the submission.
        """
        if self.settled:
            logger.debug(f"tx {self.call_name} already settled, ignoring status {update.status.value}")
            return False

        logger.info(f"tx status: {update.status.value}")

        if update.status.is_included:
            self._settlement.set_result(self._outcome(update))
            return True

        if update.status.is_failure:
            detail = f": {update.error}" if update.error else ""
            self.fail(f"tx {self.call_name} failed with status {update.status.value}{detail}")
            return True

        if update.status == TransactionStatus.RETRACTED:
            logger.warning(f"tx retracted from block {update.block_hash}, waiting for inclusion in another block")

        return False

    def fail(self, reason: str) -> None:
        if not self.settled:
            self._settlement.set_exception(SubmissionFailure(reason))

    async def result(self) -> SubmissionOutcome:
        return await self._settlement

    def _outcome(self, update: StatusUpdate) -> SubmissionOutcome:
        finality_state = (
            FinalityState.IN_BLOCK if update.status == TransactionStatus.IN_BLOCK else FinalityState.FINALIZED
        )
        explorer_url = None
        if self.node_endpoint:
            explorer_url = EXPLORER_URL_TEMPLATE.format(rpc=self.node_endpoint, block_hash=update.block_hash)
        return SubmissionOutcome(
            call_name=self.call_name,
            block_hash=update.block_hash,
            finality_state=finality_state,
            explorer_url=explorer_url,
        )


class TransactionSubmitter(object):
    """
    Signs and broadcasts calls, returning once each is included in a block.

    Only one submission is in flight at a time. Nonces are left for the node to
    assign, so overlapping submissions from one key would race for the same nonce.
    There is no timeout: a submission waits until the node reports a terminal status.
    """

    def __init__(self, chain_client: Any, node_endpoint: Optional[str] = None):
        self.chain_client = chain_client
        self.node_endpoint = node_endpoint
        self._in_flight = asyncio.Lock()

    async def submit(self, keypair: Any, call: EncodedCall) -> SubmissionOutcome:
        """
        Raises:
            SubmissionFailure: If signing fails or the chain reports a failure status.
        """
        async with self._in_flight:
            return await self._submit(keypair, call)

    async def _submit(self, keypair: Any, call: EncodedCall) -> SubmissionOutcome:
        logger.info(f"signing and sending tx: {call.name}")

        extrinsic = await self.chain_client.create_signed_extrinsic(call, keypair)
        tracker = SubmissionTracker(call.name, self.node_endpoint)
        subscription = await self.chain_client.submit_and_watch(extrinsic)

        try:
            async for update in subscription:
                if tracker.on_status(update):
                    break
        finally:
            subscription.cancel()
        await subscription.wait_closed()

        if not tracker.settled:
            tracker.fail(f"status stream for tx {call.name} ended before a terminal status")
        outcome = await tracker.result()

        logger.info(f"tx included in block: {outcome.block_hash}")
        if outcome.explorer_url:
            logger.info(f"block explorer URL: {outcome.explorer_url}")
        return outcome
