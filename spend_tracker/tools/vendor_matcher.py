"""
Vendor Matcher

Fuzzy-matches raw merchant names against a point-in-time snapshot of the
vendor registry. Every vendor contributes one index entry for its name and one
per alias, all resolving back to the same vendor.
"""
from difflib import SequenceMatcher
from typing import Callable, Dict, Iterable, List, Optional, Union

from rapidfuzz import fuzz, process

from spend_tracker.constants import (
    DEFAULT_MATCH_THRESHOLD,
    DEFAULT_SUGGESTION_THRESHOLD,
    DEFAULT_SUGGESTION_LIMIT,
    DEFAULT_MIN_MATCH_LENGTH,
    DEFAULT_SCORER,
)
from spend_tracker.models import Vendor, VendorMatch, Transaction, ProviderTransaction
from spend_tracker.utils.config_loader import get_section
from spend_tracker.utils.errors import ConfigurationError
from spend_tracker.utils.logging import get_logger
from .merchant_normalizer import normalize_merchant_name

logger = get_logger(__name__)


def sequence_ratio(s1: str, s2: str, **kwargs) -> float:
    """difflib similarity on a 0-100 scale (rapidfuzz scorer signature)"""
    return SequenceMatcher(None, s1, s2).ratio() * 100


def token_sort_ratio(s1: str, s2: str, **kwargs) -> float:
    """
    Whole-string similarity that tolerates word reordering.

    Unlike WRatio there is no partial (substring) alignment, so a short vendor
    name is not rewarded for appearing inside a longer merchant name.
    """
    return max(fuzz.ratio(s1, s2), fuzz.token_sort_ratio(s1, s2))


SCORERS: Dict[str, Callable[..., float]] = {
    "token_sort": token_sort_ratio,
    "wratio": fuzz.WRatio,
    "token_set": fuzz.token_set_ratio,
    "sequence": sequence_ratio,
}


class VendorMatcher:
    """Matches merchant names to vendors with a confidence score in [0, 1]"""

    def __init__(
        self,
        vendors: List[Vendor],
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        suggestion_threshold: float = DEFAULT_SUGGESTION_THRESHOLD,
        min_match_length: int = DEFAULT_MIN_MATCH_LENGTH,
        scorer: str = DEFAULT_SCORER,
    ):
        if scorer not in SCORERS:
            raise ConfigurationError(f"Unknown matching scorer {scorer!r}, expected one of {sorted(SCORERS)}")

        self.match_threshold = match_threshold
        self.suggestion_threshold = suggestion_threshold
        self.min_match_length = min_match_length
        self.scorer_name = scorer
        self._scorer = SCORERS[scorer]

        self.vendors: List[Vendor] = []
        self._search_names: List[str] = []
        self._entry_vendors: List[Vendor] = []
        self.refresh(vendors)

    @classmethod
    def from_config(cls, vendors: List[Vendor], config: Optional[dict] = None) -> "VendorMatcher":
        """Build a matcher with thresholds from the `matching` config section"""
        matching = get_section(config, 'matching')
        return cls(
            vendors,
            match_threshold=matching['match_threshold'],
            suggestion_threshold=matching['suggestion_threshold'],
            min_match_length=matching['min_match_length'],
            scorer=matching['scorer'],
        )

    def refresh(self, vendors: List[Vendor]) -> None:
        """
        Rebuild the index from a new vendor snapshot.

        Must be called whenever the registry changes; the index is not a live view.
        """
        self.vendors = list(vendors)
        self._search_names = []
        self._entry_vendors = []

        for vendor in self.vendors:
            for search_name in vendor.search_names:
                normalized = normalize_merchant_name(search_name)
                if not normalized:
                    continue
                self._search_names.append(normalized)
                self._entry_vendors.append(vendor)

        logger.debug(
            "Vendor index built",
            vendor_count=len(self.vendors),
            entry_count=len(self._search_names),
            scorer=self.scorer_name
        )

    def _search(self, merchant_name: str, floor: float, limit: Optional[int]) -> List[VendorMatch]:
        query = normalize_merchant_name(merchant_name)
        if len(query) < self.min_match_length or not self._search_names:
            return []

        results = process.extract(
            query,
            self._search_names,
            scorer=self._scorer,
            processor=None,
            score_cutoff=round(floor * 100, 6),
            limit=None,
        )

        # One entry per vendor: a vendor matched through several aliases keeps its best score
        matches: List[VendorMatch] = []
        seen = set()
        for _, score, index in results:
            vendor = self._entry_vendors[index]
            if vendor.id in seen:
                continue
            seen.add(vendor.id)
            confidence = min(max(score / 100.0, 0.0), 1.0)
            if confidence < floor:
                continue
            matches.append(VendorMatch(vendor=vendor, confidence=confidence))
            if limit is not None and len(matches) >= limit:
                break

        return matches

    def match(self, merchant_name: str) -> Optional[VendorMatch]:
        """
        Find the best matching vendor for a merchant name

        Args:
            merchant_name: Raw merchant name from the provider

        Returns:
            Top-ranked vendor with confidence >= match_threshold, or None
        """
        matches = self._search(merchant_name, self.match_threshold, limit=1)
        return matches[0] if matches else None

    def match_batch(
        self,
        transactions: Iterable[Union[Transaction, ProviderTransaction]]
    ) -> Dict[str, Optional[VendorMatch]]:
        """
        Match each transaction independently

        Returns:
            Map of external transaction ID -> match (or None)
        """
        return {
            transaction.external_id: self.match(transaction.merchant_name)
            for transaction in transactions
        }

    def suggestions(self, merchant_name: str, limit: int = DEFAULT_SUGGESTION_LIMIT) -> List[VendorMatch]:
        """
        Candidate vendors for human-assisted correction, best first

        Uses the relaxed suggestion_threshold; not used by automated sync.
        """
        if limit <= 0:
            return []
        return self._search(merchant_name, self.suggestion_threshold, limit=limit)
