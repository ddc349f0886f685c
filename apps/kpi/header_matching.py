"""Fuzzy mapping of noisy CSV headers to canonical KPI names."""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from apps.kpi.constants import CONTAINS_MATCH_SCORE, EXACT_MATCH_SCORE, FUZZY_MATCH_THRESHOLD
from libs.strings import normalize_header, similarity_ratio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HeaderMapping:
    """Resolved CSV column for one canonical header."""

    original_header: str
    normalized_header: str
    confidence: float
    index: int = -1


class HeaderNormalizer:
    """Resolve header strings against a canonical -> variants table.

    The table is read-only and ordered; when two canonical names match a
    header equally well the one listed first wins.
    """

    def __init__(self, normalizations: Mapping[str, Iterable[str]]):
        self.normalizations = MappingProxyType(
            {
                canonical: tuple(normalize_header(variant) for variant in variants)
                for canonical, variants in normalizations.items()
            }
        )

    def normalize(self, header: str) -> Optional[str]:
        """Return the canonical name for ``header`` or None.

        Exact (case-insensitive) variant matches score 100 and substring
        containment in either direction scores 50. A later candidate only
        replaces the current best when its score is strictly greater.
        """
        normalized = normalize_header(header)
        if not normalized:
            return None

        best_canonical = None
        best_score = 0
        for canonical, variants in self.normalizations.items():
            for variant in variants:
                if not variant:
                    continue
                if normalized == variant:
                    score = EXACT_MATCH_SCORE
                elif variant in normalized or normalized in variant:
                    score = CONTAINS_MATCH_SCORE
                else:
                    continue
                if score > best_score:
                    best_canonical, best_score = canonical, score

        if best_canonical is None:
            logger.debug(f"No header match for '{header}'")
        else:
            logger.debug(f"Header '{header}' resolved to '{best_canonical}' (score {best_score})")
        return best_canonical

    def find_best_match(self, target: str, available_headers: Iterable[str]) -> Optional[HeaderMapping]:
        """Pick the column of ``available_headers`` that best represents ``target``.

        A header resolving to the same canonical name as the target has
        confidence 1.0. Failing that, a header whose edit-distance similarity
        to the target exceeds 0.7 is accepted with that similarity as its
        confidence. The highest confidence wins, the leftmost on ties.

        Args:
            target: Canonical name or known variant being looked for
            available_headers: Header row of the CSV, in column order

        Returns:
            HeaderMapping carrying the column index, or None
        """
        target_canonical = self.normalize(target)
        if not target_canonical:
            return None

        best = None
        for index, header in enumerate(available_headers):
            if not header or not header.strip():
                continue

            header_canonical = self.normalize(header)
            if header_canonical == target_canonical:
                confidence = 1.0
            else:
                similarity = similarity_ratio(header, target)
                if similarity <= FUZZY_MATCH_THRESHOLD:
                    continue
                confidence = similarity

            if best is None or confidence > best.confidence:
                best = HeaderMapping(
                    original_header=header.strip(),
                    normalized_header=header_canonical or target_canonical,
                    confidence=confidence,
                    index=index,
                )
        return best
