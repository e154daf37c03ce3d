"""
Drug reference resolution.

The resolver is the boundary to the drug lookup collaborator: it turns caller
input (RXCUI or name) into canonical DrugRefs. The default implementation
reads the static catalog; deployments with a terminology service inject their
own DrugRefResolver.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .knowledge_base import DrugCatalog
from .models import DrugRef


@dataclass
class Resolution:
    """Outcome of resolving one request's drug identifiers."""
    drugs: List[DrugRef] = field(default_factory=list)
    unresolved: List[str] = field(default_factory=list)


class DrugRefResolver(ABC):
    """Maps identifiers or names to canonical drug references."""

    @abstractmethod
    def resolve(self, query: str) -> Optional[DrugRef]:
        """Canonical DrugRef for ``query``, or None when unknown."""

    def resolve_all(self, queries: Sequence[str]) -> Resolution:
        """
        Resolve a list of identifiers in order.

        Unknown identifiers do not fail the request: they become bare
        references named by the identifier itself, with no class, and are
        listed in ``unresolved``.
        """
        resolution = Resolution()
        for query in queries:
            drug = self.resolve(query)
            if drug is None:
                key = query.strip()
                drug = DrugRef(id=key, display_name=key, generic_name=key.lower())
                resolution.unresolved.append(key)
            resolution.drugs.append(drug)
        return resolution

    def canonicalize(self, drug: DrugRef) -> DrugRef:
        """
        Map a caller-supplied DrugRef onto its canonical identifier.

        A class given by the caller is kept; a missing one is filled in from
        the resolved reference. Unknown drugs are returned unchanged.
        """
        known = self.resolve(drug.id) or self.resolve(drug.generic_name)
        if known is None:
            return drug
        return known.model_copy(update={"drug_class": drug.drug_class or known.drug_class})


class CatalogDrugResolver(DrugRefResolver):
    """Resolver backed by the static drug catalog."""

    def __init__(self, catalog: Optional[DrugCatalog] = None):
        self.catalog = catalog or DrugCatalog()

    def resolve(self, query: str) -> Optional[DrugRef]:
        entry = self.catalog.lookup(query)
        return entry.to_ref() if entry is not None else None
