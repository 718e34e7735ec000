import asyncio
import threading
from typing import Any, Callable, Dict, Optional, Tuple

from scalecodec.base import ScaleBytes
from substrateinterface import Keypair, SubstrateInterface

from chain.status_subscription import StatusSubscription
from constants.constants import CONNECT_TIMEOUT_SECONDS
from governance.exceptions import DecodeError, EncodeError, NodeConnectionError, SubmissionFailure
from governance.models import EncodedCall, StatusUpdate, TransactionStatus
from utils.logger_utils import get_logger

logger = get_logger("Substrate Chain Client")


class SubstrateChainClient(object):
    """
    Asyncio facade over the blocking `SubstrateInterface` websocket client.

    Every blocking call is pushed to a worker thread with `asyncio.to_thread`.
    Callers await one operation at a time, so the underlying websocket is never
    used from two threads at once.
    """

    def __init__(self, node_endpoint: str, connect_timeout: float = CONNECT_TIMEOUT_SECONDS):
        self.node_endpoint = node_endpoint
        self.connect_timeout = connect_timeout
        self._substrate: Optional[SubstrateInterface] = None

    @property
    def connected(self) -> bool:
        return self._substrate is not None

    async def connect(self) -> None:
        """
        Opens the websocket and loads runtime metadata, racing a fixed timeout.

        The attempt runs on a daemon thread. Losing the race does not stop it, but
        it cannot hold the process open either. If it succeeds later the thread
        closes the connection itself, so it is never attached to this client.

        Raises:
            NodeConnectionError: On timeout or any node-level failure.
        """
        logger.info(f"connecting to {self.node_endpoint}")

        attempt = _ConnectAttempt(self._open_interface, asyncio.get_running_loop())
        try:
            self._substrate = await asyncio.wait_for(attempt.start(), timeout=self.connect_timeout)
        except asyncio.TimeoutError:
            attempt.abandon()
            reason = f"connection timeout after {self.connect_timeout} secs - could not connect to {self.node_endpoint}"
            logger.error(f"failed to connect to node: {reason}")
            raise NodeConnectionError(f"connection failed: {reason}") from None
        except Exception as e:
            logger.error(f"failed to connect to node: {e}")
            raise NodeConnectionError(f"connection failed: {e}") from e

        try:
            chain, node_name, node_version, block_number, block_hash = await asyncio.to_thread(self._read_node_info)
        except Exception as e:
            logger.error(f"failed to connect to node: {e}")
            raise NodeConnectionError(f"connection failed: {e}") from e

        logger.info(f"connected to {chain} at {node_name}-v{node_version}")
        logger.info(f"latest block: #{block_number} {block_hash}")

    async def close(self) -> None:
        if self._substrate is None:
            return
        substrate, self._substrate = self._substrate, None
        await asyncio.to_thread(substrate.close)

    async def compose_call(self, call_module: str, call_function: str, call_params: Dict[str, Any]) -> EncodedCall:
        """
        Encodes a call. `EncodedCall` values among the params are nested as calls.

        Raises:
            EncodeError: If the runtime metadata rejects the call or its params.
        """
        substrate = self._require_connection()
        params = {key: _to_native_param(value) for key, value in call_params.items()}
        try:
            call = await asyncio.to_thread(
                substrate.compose_call,
                call_module=call_module,
                call_function=call_function,
                call_params=params,
            )
        except Exception as e:
            raise EncodeError(f"failed to encode {call_module}.{call_function}: {e}") from e

        return EncodedCall(
            call_module=call_module,
            call_function=call_function,
            encoded_bytes=bytes(call.data.data),
            native=call,
        )

    async def decode_call(self, call_bytes: bytes) -> EncodedCall:
        """
        Raises:
            DecodeError: On an unknown pallet/call index or truncated/trailing bytes.
        """
        substrate = self._require_connection()

        def _decode():
            call = substrate.create_scale_object("Call", data=ScaleBytes(bytearray(call_bytes)))
            call.decode()
            return call

        try:
            call = await asyncio.to_thread(_decode)
        except Exception as e:
            raise DecodeError(f"failed to decode call data 0x{call_bytes.hex()}: {e}") from e

        return EncodedCall(
            call_module=call.value["call_module"],
            call_function=call.value["call_function"],
            encoded_bytes=bytes(call_bytes),
            native=call,
        )

    async def create_signed_extrinsic(self, call: EncodedCall, keypair: Keypair) -> Any:
        """
        Signs with no explicit nonce, so the node's next account index is used.
        """
        substrate = self._require_connection()
        try:
            return await asyncio.to_thread(substrate.create_signed_extrinsic, call=call.native, keypair=keypair)
        except Exception as e:
            raise SubmissionFailure(f"failed to sign {call.name}: {e}") from e

    async def submit_and_watch(self, extrinsic: Any) -> StatusSubscription:
        """
        Broadcasts a signed extrinsic and returns the subscription to its status updates.
        """
        substrate = self._require_connection()
        subscription = StatusSubscription(asyncio.get_running_loop())
        watcher = asyncio.ensure_future(asyncio.to_thread(self._watch_extrinsic, substrate, extrinsic, subscription))
        subscription.attach(watcher)
        return subscription

    def _open_interface(self) -> SubstrateInterface:
        substrate = SubstrateInterface(url=self.node_endpoint)
        try:
            substrate.init_runtime()
        except Exception:
            substrate.close()
            raise
        return substrate

    def _read_node_info(self) -> Tuple[str, str, str, int, str]:
        substrate = self._require_connection()
        chain = substrate.rpc_request("system_chain", [])["result"]
        node_name = substrate.rpc_request("system_name", [])["result"]
        node_version = substrate.rpc_request("system_version", [])["result"]
        header = substrate.rpc_request("chain_getHeader", [])["result"]
        block_number = int(header["number"], 16)
        block_hash = substrate.rpc_request("chain_getBlockHash", [block_number])["result"]
        return chain, node_name, node_version, block_number, block_hash

    @staticmethod
    def _watch_extrinsic(substrate: SubstrateInterface, extrinsic: Any, subscription: StatusSubscription) -> None:
        """Runs in a worker thread until a terminal status arrives or the subscription is cancelled."""

        def result_handler(message, update_nr, subscription_id):
            update = parse_status_message(message)
            if update is not None:
                subscription.publish(update)
            if subscription.cancelled or (update is not None and update.status.is_terminal):
                substrate.rpc_request("author_unwatchExtrinsic", [subscription_id])
                return update or True
            return None

        try:
            substrate.rpc_request(
                "author_submitAndWatchExtrinsic",
                [str(extrinsic.data)],
                result_handler=result_handler,
            )
        except Exception as e:
            subscription.publish(StatusUpdate(status=TransactionStatus.ERROR, error=str(e)))
        finally:
            subscription.end()

    def _require_connection(self) -> SubstrateInterface:
        if self._substrate is None:
            raise NodeConnectionError(f"not connected to {self.node_endpoint}")
        return self._substrate


def parse_status_message(message: Dict[str, Any]) -> Optional[StatusUpdate]:
    """
    Maps an `author_extrinsicUpdate` notification to a StatusUpdate.

    The node sends either a bare string ("ready", "dropped", ...) or a single-key
    object such as {"inBlock": "0x..."}.
    """
    if "error" in message:
        return StatusUpdate(status=TransactionStatus.ERROR, error=str(message["error"]))

    result = message.get("params", {}).get("result")
    if isinstance(result, dict) and result:
        key, value = next(iter(result.items()))
        block_hash = value if isinstance(value, str) else None
    else:
        key, block_hash = result, None

    try:
        status = TransactionStatus(key)
    except ValueError:
        logger.warning(f"Ignoring unrecognised transaction status: {result}")
        return None
    return StatusUpdate(status=status, block_hash=block_hash)


def _to_native_param(value: Any) -> Any:
    if isinstance(value, EncodedCall):
        return value.native
    return value


class _ConnectAttempt(object):
    """
    Blocking connect on a daemon thread, settled into a loop future.

    Once abandoned, a connection that arrives late is closed on the connecting
    thread, whether or not the event loop is still running.
    """

    def __init__(self, open_interface: Callable[[], SubstrateInterface], loop: asyncio.AbstractEventLoop):
        self._open_interface = open_interface
        self._loop = loop
        self._lock = threading.Lock()
        self._abandoned = False
        self._future = loop.create_future()
        self._thread = threading.Thread(target=self._run, name="substrate-connect", daemon=True)

    def start(self) -> "asyncio.Future[SubstrateInterface]":
        self._thread.start()
        return self._future

    def abandon(self) -> None:
        with self._lock:
            self._abandoned = True

    def _run(self) -> None:
        try:
            substrate = self._open_interface()
        except Exception as e:
            with self._lock:
                if self._abandoned:
                    return
                self._post(self._set_exception, e)
            return

        with self._lock:
            if not self._abandoned and self._post(self._set_result, substrate):
                return
        substrate.close()

    def _post(self, callback: Callable, value: Any) -> bool:
        try:
            self._loop.call_soon_threadsafe(callback, value)
        except RuntimeError:
            # Loop already closed
            return False
        return True

    def _set_result(self, substrate: SubstrateInterface) -> None:
        if self._future.done():
            substrate.close()
            return
        self._future.set_result(substrate)

    def _set_exception(self, error: Exception) -> None:
        if not self._future.done():
            self._future.set_exception(error)
