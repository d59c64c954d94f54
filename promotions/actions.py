# promotions/actions.py
"""
Campaign write operations.

Every write runs in one unit of work: the campaign and all of its conditions
and targets are committed together or not at all. Failures are logged and
re-raised after the rollback.
"""

import logging
from contextlib import contextmanager

from django.db import transaction

from .models import DiscountCampaign, DiscountCondition, DiscountTarget
from .providers import discount_settings

logger = logging.getLogger(__name__)


CAMPAIGN_FIELDS = (
    'code', 'name', 'description', 'discount_type', 'discount_value',
    'start_date', 'end_date', 'is_active', 'priority', 'is_stackable',
    'max_uses_total', 'max_uses_per_customer', 'metadata',
)
CONDITION_FIELDS = ('condition_type', 'operator', 'value', 'logic_operator', 'priority')
TARGET_FIELDS = ('target_type', 'target_id', 'target_action', 'metadata')


@contextmanager
def campaign_unit_of_work(action):
    try:
        with transaction.atomic():
            yield
    except Exception as e:
        logger.error(f"Discount campaign {action} failed: {type(e).__name__}: {e}")
        raise


def _pick(data, fields):
    return {key: data[key] for key in fields if key in data}


def _create_conditions(campaign, conditions):
    default_priority = discount_settings()['DEFAULT_CONDITION_PRIORITY']
    for condition_data in conditions:
        values = _pick(condition_data, CONDITION_FIELDS)
        if values.get('priority') is None:
            values['priority'] = default_priority
        if values.get('value') is None:
            values['value'] = {}
        condition = DiscountCondition(campaign=campaign, **values)
        condition.full_clean()
        condition.save()


def _create_targets(campaign, targets):
    for target_data in targets:
        target = DiscountTarget(campaign=campaign, **_pick(target_data, TARGET_FIELDS))
        target.full_clean()
        target.save()


def create_campaign(data):
    with campaign_unit_of_work('create'):
        campaign = DiscountCampaign(**_pick(data, CAMPAIGN_FIELDS))
        campaign.full_clean()
        campaign.save()

        _create_conditions(campaign, data.get('conditions') or [])
        _create_targets(campaign, data.get('targets') or [])

    logger.info(f"Discount campaign {campaign.pk} '{campaign.name}' created")
    return DiscountCampaign.objects.get(pk=campaign.pk)


def update_campaign(campaign, data):
    """
    Update scalar fields; a ``conditions`` or ``targets`` list replaces the
    whole child set.
    """
    with campaign_unit_of_work('update'):
        for key, value in _pick(data, CAMPAIGN_FIELDS).items():
            setattr(campaign, key, value)
        campaign.full_clean()
        campaign.save()

        if isinstance(data.get('conditions'), list):
            campaign.conditions.all().delete()
            _create_conditions(campaign, data['conditions'])

        if isinstance(data.get('targets'), list):
            campaign.targets.all().delete()
            _create_targets(campaign, data['targets'])

    logger.info(f"Discount campaign {campaign.pk} updated")
    return DiscountCampaign.objects.get(pk=campaign.pk)


def patch_campaign(campaign, data):
    """Update only the scalar fields present; conditions and targets are left alone."""
    fields = _pick(data, CAMPAIGN_FIELDS)
    with campaign_unit_of_work('patch'):
        for key, value in fields.items():
            setattr(campaign, key, value)
        campaign.full_clean()
        campaign.save(update_fields=list(fields) + ['updated_at'])

    logger.info(f"Discount campaign {campaign.pk} patched: {', '.join(fields) or 'nothing'}")
    return DiscountCampaign.objects.get(pk=campaign.pk)


def delete_campaign(campaign):
    campaign_id = campaign.pk
    with campaign_unit_of_work('delete'):
        campaign.delete()
    logger.info(f"Discount campaign {campaign_id} deleted")
