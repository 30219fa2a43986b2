import pytest

from reftoken.exceptions import ExecutionError
from tests.constants import MINT_AMOUNT, TEST_TRANSACTION_GAS


@pytest.fixture(scope='function')
def token(deployed_harness, owner, recipient):
    deployed_harness.invoke("ownerMint", recipient, MINT_AMOUNT, gas=TEST_TRANSACTION_GAS, sender=owner)
    return deployed_harness.token


def test_transfer(deployed_harness, token, recipient):
    target = deployed_harness.accounts[2]
    receipt = token.transfer(amount=4, target_address=target, transacting_address=recipient,
                             transaction_gas_limit=TEST_TRANSACTION_GAS)
    assert receipt['status'] == 1
    assert deployed_harness.invoke("balanceOf", recipient) == str(MINT_AMOUNT - 4)
    assert deployed_harness.invoke("balanceOf", target) == "4"
    assert deployed_harness.invoke("totalSupply") == str(MINT_AMOUNT)


def test_transfer_exceeding_balance(deployed_harness, token, recipient):
    with pytest.raises(ExecutionError):
        token.transfer(amount=MINT_AMOUNT + 1,
                       target_address=deployed_harness.accounts[2],
                       transacting_address=recipient,
                       transaction_gas_limit=TEST_TRANSACTION_GAS)
    assert deployed_harness.invoke("balanceOf", recipient) == str(MINT_AMOUNT)


def test_approve(deployed_harness, token, recipient):
    spender = deployed_harness.accounts[3]
    assert token.allowance(holder_address=recipient, spender_address=spender) == 0
    token.approve(amount=7, spender_address=spender, transacting_address=recipient,
                  transaction_gas_limit=TEST_TRANSACTION_GAS)
    assert token.allowance(holder_address=recipient, spender_address=spender) == 7
