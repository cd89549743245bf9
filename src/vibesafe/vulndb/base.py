from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Sequence, Tuple

from ..errors import VulnerabilityLookupError
from ..models import ResolvedPackage, Vulnerability


class VulnerabilityLookup(ABC):
    @abstractmethod
    async def lookup(self, package: ResolvedPackage) -> List[Vulnerability]:
        """Known vulnerabilities for one package; raises VulnerabilityLookupError on failure."""

    async def aclose(self) -> None:
        return None


class StaticLookup(VulnerabilityLookup):
    """Answers from a precomputed table, e.g. an exported audit report.

    Packages missing from the table have no known vulnerabilities unless
    ``strict`` is set, in which case they count as lookup failures.
    """

    def __init__(
        self,
        table: Mapping[Tuple[str, str], Sequence[Vulnerability]],
        *,
        strict: bool = False,
    ) -> None:
        self._table: Dict[Tuple[str, str], List[Vulnerability]] = {
            key: list(value) for key, value in table.items()
        }
        self.strict = strict

    async def lookup(self, package: ResolvedPackage) -> List[Vulnerability]:
        key = (package.name, package.version)
        if key in self._table:
            return list(self._table[key])
        if self.strict:
            raise VulnerabilityLookupError(package.name, package.version, "not in lookup table")
        return []
