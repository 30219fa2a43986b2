import pytest

from reftoken.blockchain.eth.registry import ContractRegistry

TEST_CHAIN_ID = 131277322940537
OTHER_CHAIN_ID = 1
TEST_ABI = [{"type": "function", "name": "totalSupply", "inputs": [], "outputs": [{"type": "uint256"}]}]


def test_contract_registry(get_random_checksum_address):
    registry = ContractRegistry()
    assert len(registry) == 0
    empty_id = registry.id

    with pytest.raises(ContractRegistry.UnknownContract):
        registry.search(chain_id=TEST_CHAIN_ID, contract_name="ReferenceToken")

    token_address = get_random_checksum_address()
    entry = registry.enroll(contract_name="ReferenceToken",
                            contract_address=token_address,
                            chain_id=TEST_CHAIN_ID,
                            contract_abi=TEST_ABI)
    assert entry == ContractRegistry.RegistryEntry("ReferenceToken", token_address, TEST_CHAIN_ID, TEST_ABI)
    assert len(registry) == 1
    assert registry.id != empty_id
    assert registry.enrolled_names == ["ReferenceToken"]

    assert registry.search(chain_id=TEST_CHAIN_ID, contract_name="ReferenceToken") == entry
    assert registry.search(chain_id=TEST_CHAIN_ID, contract_address=token_address) == entry

    # Entries are scoped by chain
    with pytest.raises(ContractRegistry.UnknownContract):
        registry.search(chain_id=OTHER_CHAIN_ID, contract_name="ReferenceToken")


def test_registry_search_terms(get_random_checksum_address):
    registry = ContractRegistry()
    with pytest.raises(ValueError):
        registry.search(chain_id=TEST_CHAIN_ID)
    with pytest.raises(ValueError):
        registry.search(chain_id=TEST_CHAIN_ID,
                        contract_name="ReferenceToken",
                        contract_address=get_random_checksum_address())


def test_ambiguous_registry_search(get_random_checksum_address):
    registry = ContractRegistry()
    first, second = get_random_checksum_address(), get_random_checksum_address()
    for address in (first, second):
        registry.enroll(contract_name="ReferenceToken",
                        contract_address=address,
                        chain_id=TEST_CHAIN_ID,
                        contract_abi=TEST_ABI)

    with pytest.raises(ContractRegistry.AmbiguousSearchTerms):
        registry.search(chain_id=TEST_CHAIN_ID, contract_name="ReferenceToken")

    # An address search still disambiguates
    assert registry.search(chain_id=TEST_CHAIN_ID, contract_address=second).address == second
    assert [entry.address for entry in registry] == [first, second]


def test_registry_id_is_deterministic(get_random_checksum_address):
    address = get_random_checksum_address()
    registries = ContractRegistry(), ContractRegistry()
    for registry in registries:
        registry.enroll(contract_name="NameRegistry",
                        contract_address=address,
                        chain_id=TEST_CHAIN_ID,
                        contract_abi=TEST_ABI)
    assert registries[0].id == registries[1].id
