import asyncio
import threading
import time

import pytest
from unittest.mock import MagicMock, patch

from chain.status_subscription import StatusSubscription
from chain.substrate_client import SubstrateChainClient, parse_status_message
from governance.exceptions import DecodeError, EncodeError, NodeConnectionError
from governance.models import EncodedCall, TransactionStatus

BLOCK_HASH = "0x" + "ab" * 32

NODE_RPC_RESULTS = {
    "system_chain": "Development",
    "system_name": "substrate-node",
    "system_version": "4.0.0",
    "chain_getHeader": {"number": "0x2a", "parentHash": "0x" + "00" * 32},
    "chain_getBlockHash": BLOCK_HASH,
}


def _node_rpc(method, params, result_handler=None):
    return {"jsonrpc": "2.0", "id": 1, "result": NODE_RPC_RESULTS[method]}


@pytest.fixture
def mock_substrate():
    substrate = MagicMock()
    substrate.rpc_request.side_effect = _node_rpc
    return substrate


@pytest.fixture
def connected_client(mock_substrate):
    client = SubstrateChainClient("ws://127.0.0.1:9944")
    client._substrate = mock_substrate
    return client


@pytest.mark.asyncio
async def test_connect_loads_runtime_and_logs_node_info(mock_substrate, caplog):
    with patch("chain.substrate_client.SubstrateInterface", return_value=mock_substrate) as MockInterface:
        client = SubstrateChainClient("ws://127.0.0.1:9944")
        with caplog.at_level("INFO"):
            await client.connect()

    MockInterface.assert_called_once_with(url="ws://127.0.0.1:9944")
    mock_substrate.init_runtime.assert_called_once()
    assert client.connected

    messages = [record.getMessage() for record in caplog.records]
    assert "connected to Development at substrate-node-v4.0.0" in messages
    assert f"latest block: #42 {BLOCK_HASH}" in messages


@pytest.mark.asyncio
async def test_connect_failure_raises_node_connection_error():
    with patch("chain.substrate_client.SubstrateInterface", side_effect=ConnectionRefusedError("refused")):
        client = SubstrateChainClient("ws://127.0.0.1:9944")

        with pytest.raises(NodeConnectionError, match="connection failed: refused"):
            await client.connect()

    assert not client.connected


@pytest.mark.asyncio
async def test_connect_closes_interface_when_runtime_fails_to_load(mock_substrate):
    mock_substrate.init_runtime.side_effect = ValueError("metadata unavailable")

    with patch("chain.substrate_client.SubstrateInterface", return_value=mock_substrate):
        client = SubstrateChainClient("ws://127.0.0.1:9944")

        with pytest.raises(NodeConnectionError, match="metadata unavailable"):
            await client.connect()

    mock_substrate.close.assert_called_once()


@pytest.mark.asyncio
async def test_connect_timeout_discards_late_connection(mock_substrate):
    def slow_connect(url):
        time.sleep(0.3)
        return mock_substrate

    with patch("chain.substrate_client.SubstrateInterface", side_effect=slow_connect):
        client = SubstrateChainClient("ws://127.0.0.1:9944", connect_timeout=0.05)

        with pytest.raises(NodeConnectionError, match="connection timeout after 0.05 secs"):
            await client.connect()

        await asyncio.sleep(0.6)

    assert not client.connected
    mock_substrate.close.assert_called_once()
    mock_substrate.rpc_request.assert_not_called()


@pytest.mark.asyncio
async def test_close_releases_interface_once(connected_client, mock_substrate):
    await connected_client.close()
    await connected_client.close()

    mock_substrate.close.assert_called_once()
    assert not connected_client.connected


@pytest.mark.asyncio
async def test_compose_call_nests_native_calls(connected_client, mock_substrate):
    inner_native = MagicMock()
    inner = EncodedCall(call_module="Whitelist", call_function="whitelist_call", encoded_bytes=b"\x40\x00", native=inner_native)
    composed = MagicMock()
    composed.data.data = bytearray(b"\x13\x00\x04")
    mock_substrate.compose_call.return_value = composed

    call = await connected_client.compose_call("TechnicalCommittee", "propose", {"threshold": 4, "proposal": inner})

    mock_substrate.compose_call.assert_called_once_with(
        call_module="TechnicalCommittee",
        call_function="propose",
        call_params={"threshold": 4, "proposal": inner_native},
    )
    assert call.encoded_bytes == b"\x13\x00\x04"
    assert call.native is composed
    assert call.name == "TechnicalCommittee.propose"


@pytest.mark.asyncio
async def test_compose_call_wraps_encoder_failure(connected_client, mock_substrate):
    mock_substrate.compose_call.side_effect = ValueError("Parameter 'call_hash' not specified")

    with pytest.raises(EncodeError, match="Whitelist.whitelist_call"):
        await connected_client.compose_call("Whitelist", "whitelist_call", {})


@pytest.mark.asyncio
async def test_decode_call_returns_call_with_original_bytes(connected_client, mock_substrate):
    decoded = MagicMock()
    decoded.value = {"call_module": "System", "call_function": "remark", "call_args": []}
    mock_substrate.create_scale_object.return_value = decoded

    call = await connected_client.decode_call(b"\x00\x00")

    decoded.decode.assert_called_once()
    assert call.encoded_bytes == b"\x00\x00"
    assert call.name == "System.remark"


@pytest.mark.asyncio
async def test_decode_call_wraps_decoder_failure(connected_client, mock_substrate):
    mock_substrate.create_scale_object.return_value.decode.side_effect = ValueError("Call index '0xff00' not found")

    with pytest.raises(DecodeError, match="0xff00"):
        await connected_client.decode_call(b"\xff\x00")


@pytest.mark.asyncio
async def test_operations_require_connection():
    client = SubstrateChainClient("ws://127.0.0.1:9944")

    with pytest.raises(NodeConnectionError, match="not connected"):
        await client.compose_call("System", "remark", {"remark": "0x00"})


@pytest.mark.asyncio
async def test_watch_stops_at_first_terminal_status():
    messages = [
        {"params": {"subscription": "sub-1", "result": "ready"}},
        {"params": {"subscription": "sub-1", "result": {"broadcast": ["12D3KooW"]}}},
        {"params": {"subscription": "sub-1", "result": {"inBlock": BLOCK_HASH}}},
        {"params": {"subscription": "sub-1", "result": {"finalized": BLOCK_HASH}}},
    ]
    unwatched = []

    def rpc_request(method, params, result_handler=None):
        if method == "author_unwatchExtrinsic":
            unwatched.append(params)
            return {"result": True}
        for update_nr, message in enumerate(messages):
            callback_result = result_handler(message, update_nr, "sub-1")
            if callback_result is not None:
                return callback_result

    substrate = MagicMock()
    substrate.rpc_request.side_effect = rpc_request
    extrinsic = MagicMock()
    subscription = StatusSubscription(asyncio.get_running_loop())

    await asyncio.to_thread(SubstrateChainClient._watch_extrinsic, substrate, extrinsic, subscription)
    updates = [update async for update in subscription]

    assert [update.status for update in updates] == [
        TransactionStatus.READY,
        TransactionStatus.BROADCAST,
        TransactionStatus.IN_BLOCK,
    ]
    assert updates[-1].block_hash == BLOCK_HASH
    assert unwatched == [["sub-1"]]


@pytest.mark.asyncio
async def test_watch_reports_rpc_failure_as_error_status():
    substrate = MagicMock()
    substrate.rpc_request.side_effect = Exception("1010: Invalid Transaction")
    subscription = StatusSubscription(asyncio.get_running_loop())

    await asyncio.to_thread(SubstrateChainClient._watch_extrinsic, substrate, MagicMock(), subscription)
    updates = [update async for update in subscription]

    assert len(updates) == 1
    assert updates[0].status == TransactionStatus.ERROR
    assert "1010" in updates[0].error


@pytest.mark.parametrize(
    "message, status, block_hash",
    [
        ({"params": {"result": "future"}}, TransactionStatus.FUTURE, None),
        ({"params": {"result": "invalid"}}, TransactionStatus.INVALID, None),
        ({"params": {"result": {"inBlock": BLOCK_HASH}}}, TransactionStatus.IN_BLOCK, BLOCK_HASH),
        ({"params": {"result": {"retracted": BLOCK_HASH}}}, TransactionStatus.RETRACTED, BLOCK_HASH),
        ({"params": {"result": {"broadcast": ["peer"]}}}, TransactionStatus.BROADCAST, None),
        ({"error": {"code": 1010, "message": "Invalid Transaction"}}, TransactionStatus.ERROR, None),
    ],
)
def test_parse_status_message(message, status, block_hash):
    update = parse_status_message(message)

    assert update.status == status
    assert update.block_hash == block_hash


def test_parse_status_message_ignores_unknown_status():
    assert parse_status_message({"params": {"result": "teleported"}}) is None


def test_late_connection_is_closed_after_event_loop_exits(mock_substrate):
    release = threading.Event()
    closed = threading.Event()
    mock_substrate.close.side_effect = lambda: closed.set()

    def hanging_connect(url):
        release.wait(5)
        return mock_substrate

    async def connect():
        client = SubstrateChainClient("ws://127.0.0.1:9944", connect_timeout=0.05)
        with pytest.raises(NodeConnectionError, match="connection timeout after 0.05 secs"):
            await client.connect()

    with patch("chain.substrate_client.SubstrateInterface", side_effect=hanging_connect):
        started = time.monotonic()
        asyncio.run(connect())
        elapsed = time.monotonic() - started

        release.set()
        assert closed.wait(2)

    assert elapsed < 1
    mock_substrate.close.assert_called_once()
    mock_substrate.rpc_request.assert_not_called()
