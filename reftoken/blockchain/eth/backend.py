import asyncio
import json
import threading
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, List, Optional, Union

import websockets
from eth_tester.exceptions import TransactionFailed
from eth_typing import ChecksumAddress
from eth_utils import encode_hex, to_checksum_address
from twisted.internet import reactor, threads
from twisted.internet.error import CannotListenError
from twisted.protocols.policies import WrappingFactory
from twisted.web.resource import Resource
from twisted.web.server import Site
from web3 import Web3
from web3.providers.eth_tester.main import EthereumTesterProvider

from reftoken.blockchain.eth.providers import _get_pyevm_test_provider
from reftoken.config.backend import BackendConfiguration
from reftoken.config.constants import HTTP_PROTOCOL
from reftoken.exceptions import HarnessError, StartupError
from reftoken.utilities.logging import Logger


def encode_rpc_result(value: Any) -> Any:
    """Encodes an eth-tester result for the wire: integers as hex quantities, bytes as hex data."""
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return hex(value)
    if isinstance(value, (bytes, bytearray)):
        return encode_hex(value)
    if isinstance(value, Mapping):
        return {key: encode_rpc_result(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode_rpc_result(item) for item in value]
    return value


class RPCDispatcher:
    """
    Serves JSON-RPC 2.0 requests from an in-process eth-tester chain.

    Requests pass through the tester provider's own middleware, so parameters
    arrive and results leave in the same encoding a node would use on the wire.
    Requests are executed one at a time.
    """

    JSONRPC_VERSION = "2.0"

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    EXECUTION_ERROR = -32000

    REVERT_PREFIX = "execution reverted"

    def __init__(self, provider: EthereumTesterProvider):
        self.log = Logger(self.__class__.__name__)
        self.provider = provider
        self.w3 = Web3(provider)
        self._make_request = provider.request_func(self.w3, ())
        self._lock = threading.RLock()

    @property
    def accounts(self) -> List[ChecksumAddress]:
        return [to_checksum_address(a) for a in self.provider.ethereum_tester.get_accounts()]

    def supports(self, method: str) -> bool:
        namespace, _, endpoint = method.partition("_")
        return endpoint in self.provider.api_endpoints.get(namespace, {})

    def _response(self, request_id, result) -> dict:
        return {"jsonrpc": self.JSONRPC_VERSION, "id": request_id, "result": result}

    def _error(self, request_id, code: int, message: str, data: Any = None) -> dict:
        error = {"code": code, "message": message, "data": data}
        return {"jsonrpc": self.JSONRPC_VERSION, "id": request_id, "error": error}

    def dispatch(self, payload: Union[str, bytes]) -> Optional[str]:
        """Handles a raw request body (single or batch) and returns the raw response body, if any."""
        try:
            request = json.loads(payload)
        except ValueError as e:
            return json.dumps(self._error(None, self.PARSE_ERROR, f"Parse error: {e}"))

        if isinstance(request, list):
            if not request:
                return json.dumps(self._error(None, self.INVALID_REQUEST, "Invalid Request: empty batch"))
            responses = [response for response in map(self.handle, request) if response is not None]
            return json.dumps(responses) if responses else None

        response = self.handle(request)
        return json.dumps(response) if response is not None else None

    def handle(self, request: Any) -> Optional[dict]:
        if not isinstance(request, dict):
            return self._error(None, self.INVALID_REQUEST, "Invalid Request")
        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params", [])
        if not isinstance(method, str) or not isinstance(params, (list, dict)):
            return self._error(request_id, self.INVALID_REQUEST, "Invalid Request")
        if not self.supports(method):
            return self._error(request_id, self.METHOD_NOT_FOUND, f"Method not found: {method}")

        self.log.debug(f"RPC {method} {params}")
        with self._lock:
            try:
                response = self._make_request(method, params)
            except TransactionFailed as e:
                reason = str(e.args[0]) if e.args else ""
                message = reason if reason.startswith(self.REVERT_PREFIX) else f"{self.REVERT_PREFIX}: {reason}"
                self.log.debug(f"RPC {method} reverted: {message}")
                response = self._error(request_id, self.EXECUTION_ERROR, message)
            except Exception as e:
                self.log.debug(f"RPC {method} failed: {e}")
                response = self._error(request_id, self.EXECUTION_ERROR, str(e) or e.__class__.__name__)

        if "id" not in request:
            return None  # notification
        if "error" in response:
            error = response["error"]
            if isinstance(error, str):
                # the tester provider reports unimplemented endpoints as bare strings
                return self._error(request_id, self.METHOD_NOT_FOUND, error)
            return self._error(request_id, error["code"], error["message"], error.get("data"))
        return self._response(request_id, encode_rpc_result(response.get("result")))


#
# Transports
#

class _JSONRPCResource(Resource):
    isLeaf = True

    def __init__(self, dispatcher: RPCDispatcher):
        super().__init__()
        self.dispatcher = dispatcher

    def render_POST(self, request):
        body = self.dispatcher.dispatch(request.content.read())
        request.setHeader(b"content-type", b"application/json")
        if body is None:
            request.setResponseCode(204)
            return b""
        return body.encode()


class _ConnectionTrackingFactory(WrappingFactory):
    """Wraps the JSON-RPC site, keeping every open connection until it is lost."""

    noisy = False

    def drop_connections(self) -> None:
        for connection in list(self.protocols):
            connection.transport.abortConnection()


class _ReactorThread:
    """The process-wide Twisted reactor, started once in a daemon thread."""

    _lock = threading.Lock()
    _thread = None

    @classmethod
    def ensure_running(cls, timeout: float) -> None:
        with cls._lock:
            if reactor.running:
                return
            ready = threading.Event()
            reactor.callWhenRunning(ready.set)
            if cls._thread is None:
                cls._thread = threading.Thread(target=reactor.run,
                                               kwargs=dict(installSignalHandlers=False),
                                               name="reftoken-reactor",
                                               daemon=True)
                cls._thread.start()
        if not ready.wait(timeout):
            raise StartupError(f"The reactor did not start within {timeout} seconds")


class _HTTPTransport:

    def __init__(self, dispatcher: RPCDispatcher, host: str, port: int, timeout: float):
        self.log = Logger(self.__class__.__name__)
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.timeout = timeout
        self._factory = None
        self._listening_port = None

    @property
    def bound_port(self) -> int:
        return self._listening_port.getHost().port

    def listen(self) -> None:
        _ReactorThread.ensure_running(timeout=self.timeout)
        site = Site(_JSONRPCResource(self.dispatcher))
        site.noisy = False
        self._factory = _ConnectionTrackingFactory(site)
        try:
            self._listening_port = threads.blockingCallFromThread(
                reactor, reactor.listenTCP, self.port, self._factory, interface=self.host
            )
        except CannotListenError as e:
            raise EphemeralBackend.BindError(f"Cannot listen on {self.host}:{self.port} - {e.socketError}") from e

    def close(self) -> None:
        def _close():
            self._factory.drop_connections()
            return self._listening_port.stopListening()
        threads.blockingCallFromThread(reactor, _close)
        self._factory = None


class _WebsocketTransport:

    def __init__(self, dispatcher: RPCDispatcher, host: str, port: int, timeout: float):
        self.log = Logger(self.__class__.__name__)
        self.dispatcher = dispatcher
        self.host = host
        self.port = port
        self.timeout = timeout
        self._loop = None
        self._thread = None
        self._server = None
        self._executor = None

    @property
    def bound_port(self) -> int:
        return self._server.sockets[0].getsockname()[1]

    def listen(self) -> None:
        self._loop = asyncio.new_event_loop()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="reftoken-ws-rpc")
        self._thread = threading.Thread(target=self._run_loop, name="reftoken-ws-loop", daemon=True)
        self._thread.start()
        future = asyncio.run_coroutine_threadsafe(self._serve(), self._loop)
        try:
            self._server = future.result(timeout=self.timeout)
        except OSError as e:
            self._shutdown_loop()
            raise EphemeralBackend.BindError(f"Cannot listen on {self.host}:{self.port} - {e}") from e
        except FutureTimeout as e:
            future.cancel()
            self._shutdown_loop()
            raise EphemeralBackend.BindError(f"Websocket server did not start within {self.timeout} seconds") from e

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    async def _serve(self):
        return await websockets.serve(self._handle_connection, self.host, self.port)

    async def _handle_connection(self, websocket) -> None:
        loop = asyncio.get_running_loop()
        try:
            async for message in websocket:
                response = await loop.run_in_executor(self._executor, self.dispatcher.dispatch, message)
                if response is not None:
                    await websocket.send(response)
        except websockets.exceptions.ConnectionClosedError as e:
            self.log.debug(f"Websocket connection closed abnormally: {e}")

    def close(self) -> None:
        async def _close():
            self._server.close()
            await self._server.wait_closed()
        try:
            asyncio.run_coroutine_threadsafe(_close(), self._loop).result(timeout=self.timeout)
        finally:
            self._shutdown_loop()

    def _shutdown_loop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=self.timeout)
        if not self._thread.is_alive():
            self._loop.close()
        self._executor.shutdown(wait=True)


class EphemeralBackend:
    """
    A disposable in-memory chain (eth-tester on py-evm) served over JSON-RPC.

    The chain is created on `start` with the configured gas limit and number of
    pre-funded accounts and is discarded on `stop`, which also releases the port.
    """

    class BackendError(HarnessError):
        pass

    class BindError(BackendError, StartupError):
        pass

    class InitializationFailed(BackendError, StartupError):
        pass

    class NotRunning(BackendError):
        pass

    def __init__(self, config: BackendConfiguration):
        self.log = Logger(self.__class__.__name__)
        self.config = config
        self.dispatcher: Optional[RPCDispatcher] = None
        self._transport = None

    def __repr__(self) -> str:
        state = self.endpoint if self.is_running else "stopped"
        return f"{self.__class__.__name__}({state})"

    def __enter__(self) -> "EphemeralBackend":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    @property
    def is_running(self) -> bool:
        return self._transport is not None

    @property
    def port(self) -> int:
        if not self.is_running:
            raise self.NotRunning("The backend is not running")
        return self._transport.bound_port

    @property
    def endpoint(self) -> str:
        return f"{self.config.protocol}://{self.config.host}:{self.port}"

    @property
    def accounts(self) -> List[ChecksumAddress]:
        if not self.is_running:
            raise self.NotRunning("The backend is not running")
        return self.dispatcher.accounts

    def start(self) -> "EphemeralBackend":
        if self.is_running:
            raise self.BackendError(f"Backend already running at {self.endpoint}")

        self.log.info(f"Starting ephemeral backend on {self.config.endpoint} "
                      f"(gas limit {self.config.gas_limit}, {self.config.number_of_accounts} accounts)")
        try:
            provider = _get_pyevm_test_provider(gas_limit=self.config.gas_limit,
                                                number_of_accounts=self.config.number_of_accounts)
        except Exception as e:
            raise self.InitializationFailed(f"Cannot initialize the chain: {e}") from e
        dispatcher = RPCDispatcher(provider=provider)

        transport_class = _HTTPTransport if self.config.protocol == HTTP_PROTOCOL else _WebsocketTransport
        transport = transport_class(dispatcher=dispatcher,
                                    host=self.config.host,
                                    port=self.config.port,
                                    timeout=self.config.startup_timeout)
        transport.listen()

        self.dispatcher = dispatcher
        self._transport = transport
        self.log.info(f"Ephemeral backend listening at {self.endpoint}")
        return self

    def stop(self) -> None:
        """Stops serving and discards the chain. Stopping a stopped backend is a no-op."""
        if not self.is_running:
            return
        endpoint = self.endpoint
        transport, self._transport = self._transport, None
        self.dispatcher = None
        transport.close()
        self.log.info(f"Ephemeral backend at {endpoint} stopped")
