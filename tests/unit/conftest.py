import asyncio

import pytest

from chain.status_subscription import StatusSubscription
from governance.models import EncodedCall, ProposalConfig, StatusUpdate, TransactionStatus


def _encode_param(value):
    if isinstance(value, EncodedCall):
        return value.encoded_hex
    return repr(value)


class FakeChainClient(object):
    """
    In-memory stand-in for SubstrateChainClient.

    Calls are "encoded" as a readable byte string of module, function and params,
    so nested calls change the encoding of their parents. Each submission replays
    the next script of status updates, or [ready, inBlock] when none is left.
    """

    def __init__(self, status_scripts=None):
        self.connected = False
        self.events = []
        self.composed = []
        self.subscriptions = []
        self.status_scripts = list(status_scripts or [])

    async def connect(self):
        self.events.append("connect")
        self.connected = True

    async def close(self):
        self.events.append("close")
        self.connected = False

    async def compose_call(self, call_module, call_function, call_params):
        self.composed.append((call_module, call_function, call_params))
        body = ";".join(f"{key}={_encode_param(value)}" for key, value in call_params.items())
        return EncodedCall(
            call_module=call_module,
            call_function=call_function,
            encoded_bytes=f"{call_module}.{call_function}({body})".encode(),
        )

    async def decode_call(self, call_bytes):
        self.events.append("decode")
        return EncodedCall(call_module="System", call_function="remark", encoded_bytes=bytes(call_bytes))

    async def create_signed_extrinsic(self, call, keypair):
        self.events.append(f"sign:{call.name}")
        return {"call": call, "keypair": keypair}

    async def submit_and_watch(self, extrinsic):
        call = extrinsic["call"]
        self.events.append(f"submit:{call.name}")
        subscription = StatusSubscription(asyncio.get_running_loop())
        if self.status_scripts:
            script = self.status_scripts.pop(0)
        else:
            script = [
                StatusUpdate(status=TransactionStatus.READY),
                StatusUpdate(status=TransactionStatus.IN_BLOCK, block_hash=f"0x{len(self.subscriptions):064x}"),
            ]
        for update in script:
            subscription.publish(update)
        subscription.end()
        self.subscriptions.append(subscription)
        return subscription


@pytest.fixture
def fake_chain_client_cls():
    return FakeChainClient


@pytest.fixture
def fake_chain_client():
    return FakeChainClient()


@pytest.fixture
def proposal_config():
    return ProposalConfig(
        tech_comm_threshold=4,
        referendum_delay=100,
        proxy_address="0x3e25247CfF03F99a7D83b28F207112234feE73a6",
    )
