"""
Alternative candidate generation from therapeutic class peers.
"""

import logging
from typing import List, Optional, Sequence

from app.services.interactions.errors import NotFoundError
from app.services.interactions.models import DrugRef

from .equivalence import TherapeuticClassTable

logger = logging.getLogger(__name__)


class AlternativeCandidateGenerator:
    """Enumerates same-class peers of a target drug."""

    def __init__(self, class_table: Optional[TherapeuticClassTable] = None, max_candidates: int = 0):
        self.class_table = class_table or TherapeuticClassTable()
        self.max_candidates = max_candidates

    def generate(self, target: DrugRef, current_drugs: Sequence[DrugRef]) -> List[DrugRef]:
        """
        Class peers of ``target`` not already in ``current_drugs``.

        A drug with no known class yields no candidates; that is not an error.

        Args:
            target: Drug to replace
            current_drugs: The full regimen, target included

        Returns:
            Candidates in class-table order, capped at max_candidates when set
        """
        try:
            class_code = self.class_table.class_of(target)
            members = self.class_table.members(class_code)
        except NotFoundError as e:
            logger.debug(f"No alternatives for {target.id}: {e}")
            return []

        excluded = {drug.id for drug in current_drugs}
        excluded.add(target.id)

        candidates = [drug for drug in members if drug.id not in excluded]
        if self.max_candidates:
            candidates = candidates[:self.max_candidates]
        return candidates
