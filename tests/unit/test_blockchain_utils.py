import pytest

from reftoken.blockchain.eth.utils import (
    get_transaction_name,
    prettify_eth_amount,
)


@pytest.mark.parametrize('amount, denomination, expected', (
    (1, 'wei', '1 wei'),
    (1_000_000_000, 'wei', '1 gwei'),
    (10 ** 18, 'wei', '1 ETH'),
    (1, 'ether', '1 ETH'),
    ('not an amount', 'wei', 'not an amount'),
))
def test_prettify_eth_amount(amount, denomination, expected):
    assert prettify_eth_amount(amount, original_denomination=denomination) == expected


def test_get_transaction_name(mocker):
    assert get_transaction_name(mocker.Mock(fn_name="ownerMint")) == "OWNERMINT"
    assert get_transaction_name(mocker.Mock(spec=[])) == "UNKNOWN"
