import hashlib
import json
from typing import List, NamedTuple, Optional

from web3.types import ABI

from reftoken.utilities.logging import Logger


class ContractRegistry:
    """
    An in-memory registry of the contracts deployed during one harness session.

    Entries map (chain ID, contract name) to a deployed address and ABI. The same
    contract name may be enrolled more than once, in which case a search by name
    is ambiguous and a search by address must be used instead.
    """

    class RegistryEntry(NamedTuple):
        """A single contract registry entry."""

        name: str
        address: str
        chain_id: int
        abi: ABI

    class RegistryError(Exception):
        """Base class for registry errors"""

    class UnknownContract(RegistryError):
        """Raised when a contract is not found in the registry"""

    class AmbiguousSearchTerms(RegistryError):
        """Raised when there are multiple results for a given registry search"""

    def __init__(self):
        self.log = Logger("registry")
        self._entries: List[ContractRegistry.RegistryEntry] = list()

    def __repr__(self) -> str:
        r = f"{self.__class__.__name__}(id={self.id[:6]}, entries={len(self)})"
        return r

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    @property
    def id(self) -> str:
        """A unique identifier for the current registry contents."""
        blake = hashlib.blake2b()
        blake.update(json.dumps([entry._asdict() for entry in self._entries]).encode())
        return blake.digest().hex()

    @property
    def enrolled_names(self) -> List[str]:
        return [entry.name for entry in self._entries]

    def enroll(self, contract_name: str, contract_address: str, chain_id: int, contract_abi: ABI) -> RegistryEntry:
        entry = self.RegistryEntry(name=contract_name, address=contract_address, chain_id=int(chain_id), abi=contract_abi)
        self._entries.append(entry)
        self.log.debug(f"Enrolled {contract_name}:{contract_address} on chain {chain_id}")
        return entry

    def search(
        self,
        chain_id: int,
        contract_name: Optional[str] = None,
        contract_address: Optional[str] = None,
    ) -> RegistryEntry:
        """Search the registry for a contract by name or address"""
        if not (bool(contract_name) ^ bool(contract_address)):
            raise ValueError("Pass contract_name or contract_address, not both.")
        results = list()
        for entry in self._entries:
            if entry.chain_id != int(chain_id):
                continue
            if contract_name and entry.name == contract_name:
                results.append(entry)
            elif contract_address and entry.address == contract_address:
                results.append(entry)

        if not results:
            term = contract_name or contract_address
            raise self.UnknownContract(f"{term} is not enrolled on chain {chain_id}")
        if len(results) > 1:
            addresses = ", ".join(entry.address for entry in results)
            raise self.AmbiguousSearchTerms(f"Multiple registry entries for {contract_name}: {addresses}")
        return results[0]
