"""
Pairwise combination of a drug list.

Pairs are canonicalised as soon as they are built (lower id first, plain
string comparison) so check(a, b) and check(b, a) hit the same store key,
the same cache entry and produce the same record.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import ValidationCode, ValidationError
from .models import DrugRef


@dataclass(frozen=True)
class DrugPair:
    """Canonically ordered pair of distinct drugs."""
    drug_a: DrugRef
    drug_b: DrugRef

    @classmethod
    def of(cls, first: DrugRef, second: DrugRef) -> "DrugPair":
        if first.id == second.id:
            raise ValueError(f"Cannot pair drug {first.id} with itself")
        if first.id < second.id:
            return cls(first, second)
        return cls(second, first)

    @property
    def key(self) -> Tuple[str, str]:
        return (self.drug_a.id, self.drug_b.id)

    def __str__(self) -> str:
        return f"{self.drug_a.display_name}+{self.drug_b.display_name}"


def canonical_key(id_a: str, id_b: str) -> Tuple[str, str]:
    """Order two identifiers the way every store and cache keys a pair."""
    return (id_a, id_b) if id_a < id_b else (id_b, id_a)


def validate_drug_count(count: int, minimum: int, maximum: int) -> None:
    """Raise ValidationError when ``count`` falls outside [minimum, maximum]."""
    if count < minimum:
        noun = "drug is" if minimum == 1 else "drugs are"
        raise ValidationError(
            ValidationCode.TOO_FEW_DRUGS,
            f"At least {minimum} distinct {noun} required, got {count}",
        )
    if count > maximum:
        raise ValidationError(
            ValidationCode.TOO_MANY_DRUGS,
            f"At most {maximum} distinct drugs are allowed, got {count}",
        )


def dedupe_drugs(drugs: Sequence[DrugRef]) -> List[DrugRef]:
    """Drop repeated ids, keeping the first occurrence and input order."""
    seen = set()
    unique = []
    for drug in drugs:
        if drug.id in seen:
            continue
        seen.add(drug.id)
        unique.append(drug)
    return unique


def generate_pairs(drugs: Sequence[DrugRef], max_drugs: int = 10) -> List[DrugPair]:
    """
    Build the C(N,2) canonical pairs of a drug list.

    Args:
        drugs: Resolved drugs in caller order; duplicates by id are dropped
        max_drugs: Upper bound on distinct drugs

    Returns:
        Pairs in discovery order (i, j) with i < j over the deduplicated list

    Raises:
        ValidationError: TooFewDrugs / TooManyDrugs
    """
    unique = dedupe_drugs(drugs)
    validate_drug_count(len(unique), 2, max_drugs)

    pairs = []
    for i in range(len(unique)):
        for j in range(i + 1, len(unique)):
            pairs.append(DrugPair.of(unique[i], unique[j]))
    return pairs
