"""Map Stripe price labels onto the membership tier enum.

The matching is a string heuristic over operator-supplied labels, so the
keyword tables come from configuration (``MEMBERSHIP_TIER_KEYWORDS`` and
``MEMBERSHIP_EXCLUDED_TIER_KEYWORDS``).
"""

from __future__ import annotations

import logging
from typing import Iterable, Mapping, Optional, Sequence

from neighbors_admin.config import CONFIG
from neighbors_admin.db.models import MembershipTier

from .stripe_service import BillingPrice

logger = logging.getLogger(__name__)


class TierResolver:
    """Resolve a tier from price metadata first, then the price nickname."""

    def __init__(
        self,
        keywords: Optional[Mapping[str, str]] = None,
        excluded_keywords: Optional[Sequence[str]] = None,
    ):
        source = keywords if keywords is not None else getattr(CONFIG, "membership_tier_keywords", {})
        self.keywords = {key.lower(): value for key, value in (source or {}).items()}
        excluded = (
            excluded_keywords
            if excluded_keywords is not None
            else getattr(CONFIG, "membership_excluded_tier_keywords", ())
        )
        self.excluded_keywords = tuple(keyword.lower() for keyword in excluded or ())

    def is_excluded(self, label: Optional[str]) -> bool:
        """True when ``label`` names a business/corporate tier kept out of memberships."""

        if not label or not label.strip() or MembershipTier.parse(label) is not None:
            return False
        lowered = label.strip().lower()
        return any(keyword in lowered for keyword in self.excluded_keywords)

    def resolve_label(self, label: Optional[str]) -> Optional[MembershipTier]:
        if not label or not label.strip():
            return None

        exact = MembershipTier.parse(label)
        if exact is not None:
            return exact

        if self.is_excluded(label):
            return None

        lowered = label.strip().lower()
        for keyword, tier_name in self.keywords.items():
            if keyword in lowered:
                tier = MembershipTier.parse(tier_name)
                if tier is None:
                    logger.warning("Tier keyword %r maps to unknown tier %r", keyword, tier_name)
                    continue
                return tier
        return None

    def resolve(self, labels: Iterable[Optional[str]]) -> Optional[MembershipTier]:
        for label in labels:
            tier = self.resolve_label(label)
            if tier is not None:
                return tier
        return None

    def resolve_price(self, price: Optional[BillingPrice]) -> Optional[MembershipTier]:
        if price is None:
            return None
        metadata_tier = price.metadata.get("tier")
        if self.is_excluded(metadata_tier):
            # An explicit business tier is final; the nickname is not consulted.
            logger.info("Price %s is tagged with excluded tier %r", price.id, metadata_tier)
            return None
        tier = self.resolve([metadata_tier, price.nickname])
        if tier is None:
            logger.warning(
                "Could not map price %s (metadata tier=%r, nickname=%r) to a membership tier",
                price.id,
                price.metadata.get("tier"),
                price.nickname,
            )
        return tier


__all__ = ["TierResolver"]
