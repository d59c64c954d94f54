# promotions/usage.py
import logging

from django.db import transaction
from django.db.models import F, Q
from django.utils import timezone

from .enums import OrderableType
from .exceptions import UsageLimitExceeded
from .models import DiscountCampaign, DiscountUsage

logger = logging.getLogger(__name__)


class UsageRecorder:
    """
    Persists a DiscountUsage and bumps the campaign's counter.

    Runs inside the caller's transaction (nested as a savepoint), so a usage is
    never counted for an order that is rolled back. The counter increment is a
    single guarded UPDATE: a campaign already at max_uses_total raises
    UsageLimitExceeded instead of going over.
    """

    def record(self, campaign, customer_id, orderable, amount_saved, metadata=None,
               orderable_type=OrderableType.ORDER):
        campaign_id = getattr(campaign, 'pk', campaign)
        orderable_id = getattr(orderable, 'pk', orderable)

        with transaction.atomic():
            updated = (
                DiscountCampaign.objects
                .filter(pk=campaign_id)
                .filter(Q(max_uses_total__isnull=True) | Q(max_uses_total__gt=F('current_uses')))
                .update(current_uses=F('current_uses') + 1, updated_at=timezone.now())
            )
            if not updated:
                if DiscountCampaign.objects.filter(pk=campaign_id).exists():
                    logger.warning(f"Campaign {campaign_id} reached its usage limit on {orderable_type} {orderable_id}")
                    raise UsageLimitExceeded(campaign_id)
                # Deleted campaigns still get their audit record
                logger.info(f"Campaign {campaign_id} no longer exists, recording usage without counter")

            usage = DiscountUsage.objects.create(
                campaign_id=campaign_id,
                customer_id=customer_id,
                orderable_type=orderable_type,
                orderable_id=orderable_id,
                discount_amount_applied=max(int(amount_saved or 0), 0),
                metadata=metadata or {},
            )

        logger.info(
            f"Discount usage recorded: campaign {campaign_id}, {orderable_type} {orderable_id}, "
            f"saved {usage.discount_amount_applied}"
        )
        return usage

    def usages_for(self, orderable, orderable_type=OrderableType.ORDER):
        orderable_id = getattr(orderable, 'pk', orderable)
        return (
            DiscountUsage.objects
            .filter(orderable_type=orderable_type, orderable_id=orderable_id)
            .order_by('id')
        )
