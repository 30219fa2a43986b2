import json

import pytest
from eth_tester.exceptions import TransactionFailed
from hexbytes import HexBytes

from reftoken.blockchain.eth.backend import RPCDispatcher, encode_rpc_result
from reftoken.blockchain.eth.providers import _get_pyevm_test_provider
from tests.constants import NUMBER_OF_ETH_TEST_ACCOUNTS, TEST_GAS_LIMIT


def rpc(method, *params, request_id=1):
    return json.dumps({"jsonrpc": "2.0", "id": request_id, "method": method, "params": list(params)})


@pytest.fixture(scope='module')
def dispatcher():
    provider = _get_pyevm_test_provider(gas_limit=TEST_GAS_LIMIT, number_of_accounts=NUMBER_OF_ETH_TEST_ACCOUNTS)
    return RPCDispatcher(provider=provider)


@pytest.mark.parametrize('value, encoded', (
    (None, None),
    (True, True),
    (0, "0x0"),
    (255, "0xff"),
    (b"\x01\x02", "0x0102"),
    (HexBytes("0xdead"), "0xdead"),
    ("0xDeaDbeefdEAdbeefdEadbEEFdeadbeEFdEaDbeeF", "0xDeaDbeefdEAdbeefdEadbEEFdeadbeEFdEaDbeeF"),
    ({"number": 1, "hash": b"\xff", "logs": [{"logIndex": 0}]},
     {"number": "0x1", "hash": "0xff", "logs": [{"logIndex": "0x0"}]}),
))
def test_encode_rpc_result(value, encoded):
    assert encode_rpc_result(value) == encoded


def test_dispatch_accounts(dispatcher):
    response = json.loads(dispatcher.dispatch(rpc("eth_accounts")))
    assert response["jsonrpc"] == "2.0"
    assert response["id"] == 1
    assert len(response["result"]) == NUMBER_OF_ETH_TEST_ACCOUNTS
    assert response["result"] == dispatcher.accounts


def test_dispatch_quantities_are_hex(dispatcher):
    block_number = json.loads(dispatcher.dispatch(rpc("eth_blockNumber")))["result"]
    assert block_number.startswith("0x")

    block = json.loads(dispatcher.dispatch(rpc("eth_getBlockByNumber", "latest", False)))["result"]
    assert int(block["gasLimit"], 16) == TEST_GAS_LIMIT
    assert int(block["number"], 16) == int(block_number, 16)

    chain_id = json.loads(dispatcher.dispatch(rpc("eth_chainId")))["result"]
    assert int(chain_id, 16) > 0


def test_dispatch_batch_and_notifications(dispatcher):
    batch = json.dumps([json.loads(rpc("eth_chainId", request_id=7)),
                        {"jsonrpc": "2.0", "method": "eth_blockNumber", "params": []},
                        json.loads(rpc("net_version", request_id=8))])
    responses = json.loads(dispatcher.dispatch(batch))
    assert [response["id"] for response in responses] == [7, 8]

    notification = json.dumps({"jsonrpc": "2.0", "method": "eth_blockNumber", "params": []})
    assert dispatcher.dispatch(notification) is None


@pytest.mark.parametrize('payload, code', (
    ("{not json", RPCDispatcher.PARSE_ERROR),
    ("[]", RPCDispatcher.INVALID_REQUEST),
    ("42", RPCDispatcher.INVALID_REQUEST),
    (json.dumps({"jsonrpc": "2.0", "id": 1, "params": []}), RPCDispatcher.INVALID_REQUEST),
    (json.dumps({"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": "nope"}), RPCDispatcher.INVALID_REQUEST),
    (rpc("bananas_ripen"), RPCDispatcher.METHOD_NOT_FOUND),
))
def test_dispatch_errors(dispatcher, payload, code):
    response = json.loads(dispatcher.dispatch(payload))
    assert "result" not in response
    assert response["error"]["code"] == code


def test_dispatch_reverts(dispatcher, mocker):
    make_request = mocker.patch.object(dispatcher, '_make_request', side_effect=TransactionFailed("caller is not the owner"))
    response = json.loads(dispatcher.dispatch(rpc("eth_call", {"to": dispatcher.accounts[0]}, "latest")))
    make_request.assert_called_once()
    assert response["error"]["code"] == RPCDispatcher.EXECUTION_ERROR
    assert response["error"]["message"] == "execution reverted: caller is not the owner"


def test_dispatch_unexpected_failure(dispatcher, mocker):
    mocker.patch.object(dispatcher, '_make_request', side_effect=ValueError("invalid params"))
    response = json.loads(dispatcher.dispatch(rpc("eth_getBalance", "0x00", "latest")))
    assert response["error"] == {"code": RPCDispatcher.EXECUTION_ERROR, "message": "invalid params", "data": None}


def test_send_transaction_mines_immediately(dispatcher):
    sender, recipient = dispatcher.accounts[:2]
    before = int(json.loads(dispatcher.dispatch(rpc("eth_blockNumber")))["result"], 16)
    transaction = {"from": sender, "to": recipient, "value": hex(1), "gas": hex(21_000)}
    txhash = json.loads(dispatcher.dispatch(rpc("eth_sendTransaction", transaction)))["result"]

    receipt = json.loads(dispatcher.dispatch(rpc("eth_getTransactionReceipt", txhash)))["result"]
    assert receipt["status"] == "0x1"
    assert int(receipt["blockNumber"], 16) == before + 1
