# deal_tracker/filters/deduplicator.py

"""Deal deduplication by fuzzy title similarity across sources."""

import logging
import re

from deal_tracker.config.settings import Settings
from deal_tracker.models.deal import Deal

logger = logging.getLogger("deal_tracker.filters")


class DealDeduplicator:
    """Drop deals whose titles are near-identical to an earlier deal."""

    _NON_ALNUM_RE = re.compile(r"[^a-z0-9]")

    @staticmethod
    def _normalise_title(title: str) -> str:
        """Lowercase and strip every non-alphanumeric character."""
        return DealDeduplicator._NON_ALNUM_RE.sub("", title.lower())

    @staticmethod
    def levenshtein_distance(a: str, b: str) -> int:
        """Classic edit distance (insert, delete, substitute cost 1)."""
        if len(a) < len(b):
            a, b = b, a
        previous = list(range(len(b) + 1))
        for i, char_a in enumerate(a, start=1):
            current = [i]
            for j, char_b in enumerate(b, start=1):
                current.append(
                    min(
                        previous[j] + 1,
                        current[j - 1] + 1,
                        previous[j - 1] + (char_a != char_b),
                    )
                )
            previous = current
        return previous[-1]

    @staticmethod
    def similarity(a: str, b: str) -> float:
        """1 minus the edit distance normalised by the longer string.

        Two empty strings are identical (1.0).
        """
        longest = max(len(a), len(b))
        if longest == 0:
            return 1.0
        distance = DealDeduplicator.levenshtein_distance(a, b)
        return (longest - distance) / longest

    @staticmethod
    def deduplicate(
        deals: list[Deal],
        threshold: float = Settings.DEDUP_SIMILARITY,
    ) -> tuple[list[Deal], int]:
        """Keep the first of every group of similar titles.

        A later deal is discarded when its normalised title is more
        than *threshold* similar to any already accepted title.
        Returns the kept deals in input order and the removed count.
        """
        kept: list[Deal] = []
        seen_titles: list[str] = []
        removed = 0

        for deal in deals:
            title = DealDeduplicator._normalise_title(deal.title)
            if any(
                DealDeduplicator.similarity(title, seen) > threshold
                for seen in seen_titles
            ):
                logger.debug(
                    "Dropped duplicate deal '%s' (source=%s)",
                    deal.title,
                    deal.source,
                )
                removed += 1
                continue
            seen_titles.append(title)
            kept.append(deal)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate deals", removed
            )

        return kept, removed
