"""
Reference scenarios exercising a freshly deployed token.

Each scenario owns its harness, always tears it down, and raises
AssertionError when an observed value differs from the expected one.
"""

from typing import Callable, Dict, NamedTuple, Optional

from reftoken.blockchain.eth.sol.compile.types import ContractArtifacts
from reftoken.config.backend import BackendConfiguration
from reftoken.config.constants import DEFAULT_TRANSACTION_GAS
from reftoken.exceptions import StartupError
from reftoken.harness import Harness

DEFAULT_UNREACHABLE_STARTUP_TIMEOUT = 1  # seconds


class ScenarioResult(NamedTuple):
    name: str
    description: str
    observations: Dict[str, str]


def compatible_token_metadata(config: BackendConfiguration,
                              artifacts: Optional[ContractArtifacts] = None) -> ScenarioResult:
    """A freshly deployed token reports its constructor parameters and an empty supply."""
    name, symbol, decimals = "ERC20 Compatible Reference Token", "XRT20", 18
    with Harness(artifacts=artifacts) as harness:
        harness.start_backend(config)
        harness.resolve_naming_dependency()
        token = harness.deploy_contract(name, symbol, decimals)
        assert token.contract_address, "deployment returned an empty address"

        observations = {method: harness.invoke(method) for method in ("name", "symbol", "decimals", "totalSupply")}
        assert observations["name"] == name
        assert observations["symbol"] == symbol
        assert observations["decimals"] == str(decimals)
        assert observations["totalSupply"] == "0"
        observations["address"] = token.contract_address

    return ScenarioResult(name="metadata",
                          description=f"deploy ({name!r}, {symbol!r}, {decimals})",
                          observations=observations)


def owner_mint(config: BackendConfiguration,
               artifacts: Optional[ContractArtifacts] = None,
               amount: int = 10) -> ScenarioResult:
    """Minting to an empty account raises both its balance and the total supply by the minted amount."""
    with Harness(artifacts=artifacts) as harness:
        harness.start_backend(config)
        harness.deploy_contract("Reference Token", "XRT", 18)
        owner, recipient = harness.accounts[0], harness.accounts[1]

        before = harness.observe("totalSupply")
        receipt = harness.invoke("ownerMint", recipient, amount, gas=DEFAULT_TRANSACTION_GAS, sender=owner)
        assert receipt["status"] == 1, "mint transaction failed"
        after = harness.observe("totalSupply")
        balance = harness.observe("balanceOf", recipient)

        assert before.value == "0"
        assert after.value == str(amount)
        assert balance.value == str(amount)

    return ScenarioResult(name="mint",
                          description=f"ownerMint({recipient}, {amount})",
                          observations={"totalSupply": after.value, "balanceOf": balance.value})


def unreachable_backend(config: BackendConfiguration,
                        artifacts: Optional[ContractArtifacts] = None) -> ScenarioResult:
    """Attaching to an endpoint nobody listens on fails before any deployment, and teardown still succeeds."""
    unreachable = BackendConfiguration(host=config.host,
                                       port=config.port,
                                       protocol=config.protocol,
                                       launch=False,
                                       startup_timeout=DEFAULT_UNREACHABLE_STARTUP_TIMEOUT)
    harness = Harness(artifacts=artifacts)
    try:
        harness.start_backend(unreachable)
    except StartupError as e:
        error = str(e)
    else:
        raise AssertionError(f"{unreachable.endpoint} answered; expected nothing to be listening")
    finally:
        harness.stop_backend()

    assert harness.token is None, "a contract was deployed"
    return ScenarioResult(name="unreachable",
                          description=f"attach to {unreachable.endpoint}",
                          observations={"error": error, "state": harness.state.name})


SCENARIOS: Dict[str, Callable[..., ScenarioResult]] = {
    "metadata": compatible_token_metadata,
    "mint": owner_mint,
    "unreachable": unreachable_backend,
}
