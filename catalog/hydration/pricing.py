"""
Two-level pricing resolution: tiers per service, features per tier.

The second stage filters on *tier* ids, so it cannot start before the first
stage has returned; the resolver as a whole still runs concurrently with the
other relation loaders of the same call.
"""
from collections.abc import Collection, Sequence
from operator import attrgetter

from catalog.hydration.grouping import group_by
from catalog.hydration.loaders import RelationSpec, load_relation
from catalog.models import ServicePricingFeature, ServicePricingTier
from catalog.schemas import PricingTier
from catalog.store import QueryEngine

PRICING_TIERS = RelationSpec(
    "pricing_tiers",
    ServicePricingTier,
    ServicePricingTier.service_id,
    (ServicePricingTier.order, ServicePricingTier.id),
)
PRICING_FEATURES = RelationSpec(
    "pricing_features",
    ServicePricingFeature,
    ServicePricingFeature.pricing_tier_id,
    (ServicePricingFeature.order, ServicePricingFeature.id),
)


def nest_pricing(
    tiers: Sequence[ServicePricingTier],
    features_by_tier: dict[int, list[ServicePricingFeature]],
    service_ids: Collection[str] | None = None,
) -> dict[str, list[PricingTier]]:
    """
    Attach each tier's ordered feature strings and group the tiers by
    service id.  Tiers without features get an empty list.
    """
    tiers_by_service = group_by(tiers, attrgetter("service_id"), only=service_ids)
    return {
        service_id: [
            PricingTier(
                name=tier.name,
                price=tier.price,
                description=tier.description,
                popular=bool(tier.popular),
                features=[row.feature for row in features_by_tier.get(tier.id, [])],
            )
            for tier in service_tiers
        ]
        for service_id, service_tiers in tiers_by_service.items()
    }


async def resolve_pricing(
    store: QueryEngine, service_ids: Sequence[str]
) -> dict[str, list[PricingTier]]:
    tiers = await load_relation(store, PRICING_TIERS, service_ids)
    tier_ids = [tier.id for tier in tiers]
    if not tier_ids:
        # Never issue the feature query with an empty id set.
        return {}

    features = await load_relation(store, PRICING_FEATURES, tier_ids)
    features_by_tier = group_by(features, PRICING_FEATURES.key_of, only=tier_ids)
    return nest_pricing(tiers, features_by_tier, service_ids)
