# deal_tracker/filters/deal_validator.py

"""Deal validation: drop scraped deals missing essential fields."""

import logging

from deal_tracker.models.deal import Deal

logger = logging.getLogger("deal_tracker.filters")


class DealValidator:
    """Validate deals before deduplication."""

    @staticmethod
    def validate(deals: list[Deal]) -> tuple[list[Deal], int]:
        """Keep deals with a real title, a positive price and a source URL.

        A title must be longer than three characters after stripping.
        Returns the valid deals and the count of dropped items.
        """
        valid: list[Deal] = []
        dropped = 0

        for deal in deals:
            if len(deal.title.strip()) <= 3:
                logger.debug(
                    "Dropped deal with short title '%s' (source=%s)",
                    deal.title,
                    deal.source,
                )
                dropped += 1
                continue
            if deal.current_price <= 0:
                logger.debug(
                    "Dropped deal with zero/negative price "
                    "(title=%s, source=%s)",
                    deal.title,
                    deal.source,
                )
                dropped += 1
                continue
            if not deal.source_url:
                logger.debug(
                    "Dropped deal without link (title=%s)", deal.title
                )
                dropped += 1
                continue
            valid.append(deal)

        if dropped:
            logger.info("Validation dropped %d invalid deals", dropped)

        return valid, dropped
