import threading

from reftoken.harness import Observation
from tests.constants import MINT_AMOUNT, TEST_TRANSACTION_GAS


def test_reads_are_idempotent(deployed_harness, recipient):
    first = deployed_harness.observe("balanceOf", recipient)
    second = deployed_harness.observe("balanceOf", recipient)
    assert first == second
    assert deployed_harness.invoke("totalSupply") == deployed_harness.invoke("totalSupply")


def test_reads_follow_confirmed_writes(deployed_harness, owner, recipient):
    before = deployed_harness.observe("totalSupply")
    receipt = deployed_harness.invoke("ownerMint", recipient, MINT_AMOUNT, gas=TEST_TRANSACTION_GAS, sender=owner)
    after = deployed_harness.observe("totalSupply")

    assert before == Observation("totalSupply", (), "0", receipt['blockNumber'] - 1)
    assert after == Observation("totalSupply", (), str(MINT_AMOUNT), receipt['blockNumber'])


def test_successive_mints_accumulate(deployed_harness, owner, recipient):
    blocks = list()
    for expected_supply in range(MINT_AMOUNT, 4 * MINT_AMOUNT, MINT_AMOUNT):
        receipt = deployed_harness.invoke("ownerMint", recipient, MINT_AMOUNT, gas=TEST_TRANSACTION_GAS, sender=owner)
        blocks.append(receipt['blockNumber'])
        assert deployed_harness.invoke("totalSupply") == str(expected_supply)
    assert blocks == sorted(blocks)
    assert len(set(blocks)) == len(blocks)


def test_zero_mint(deployed_harness, owner, recipient):
    receipt = deployed_harness.invoke("ownerMint", recipient, 0, gas=TEST_TRANSACTION_GAS, sender=owner)
    assert receipt['status'] == 1
    assert deployed_harness.invoke("totalSupply") == "0"
    assert deployed_harness.invoke("balanceOf", recipient) == "0"


def test_concurrent_writes_are_serialized(deployed_harness, owner):
    recipients = deployed_harness.accounts[1:5]
    receipts, errors = list(), list()

    def mint(recipient):
        try:
            receipts.append(deployed_harness.invoke("ownerMint", recipient, MINT_AMOUNT,
                                                    gas=TEST_TRANSACTION_GAS, sender=owner))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=mint, args=(recipient,)) for recipient in recipients]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    assert len({receipt['blockNumber'] for receipt in receipts}) == len(recipients)
    assert deployed_harness.invoke("totalSupply") == str(MINT_AMOUNT * len(recipients))
    for recipient in recipients:
        assert deployed_harness.invoke("balanceOf", recipient) == str(MINT_AMOUNT)
