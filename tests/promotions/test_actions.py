from datetime import timedelta

import pytest
from django.core.exceptions import ValidationError
from django.utils import timezone

from promotions.actions import create_campaign, delete_campaign, patch_campaign, update_campaign
from promotions.models import DiscountCampaign, DiscountCondition, DiscountTarget, DiscountUsage

pytestmark = pytest.mark.django_db


def campaign_data(**overrides):
    now = timezone.now()
    data = {
        'name': 'Summer sale',
        'discount_type': 'percentage',
        'discount_value': 20,
        'start_date': now,
        'end_date': now + timedelta(days=30),
        'priority': 5,
        'conditions': [
            {'condition_type': 'min_cart_value', 'operator': '>=', 'value': {'amount': 5000}},
        ],
        'targets': [
            {'target_type': 'category', 'target_id': 7},
        ],
    }
    data.update(overrides)
    return data


class TestCreate:

    def test_creates_campaign_with_children(self):
        campaign = create_campaign(campaign_data())

        assert campaign.name == 'Summer sale'
        condition = campaign.conditions.get()
        assert condition.priority == 10
        assert condition.value == {'amount': 5000}
        target = campaign.targets.get()
        assert (target.target_type, target.target_id, target.target_action) == ('category', 7, 'apply_to')

    def test_end_date_must_follow_start_date(self):
        now = timezone.now()
        with pytest.raises(ValidationError):
            create_campaign(campaign_data(start_date=now, end_date=now - timedelta(hours=1)))
        assert not DiscountCampaign.objects.exists()

    def test_invalid_child_rolls_everything_back(self):
        data = campaign_data(targets=[{'target_type': 'warehouse', 'target_id': 1}])
        with pytest.raises(ValidationError):
            create_campaign(data)

        assert not DiscountCampaign.objects.exists()
        assert not DiscountCondition.objects.exists()


class TestUpdate:

    def test_replaces_child_sets(self):
        campaign = create_campaign(campaign_data())
        updated = update_campaign(campaign, {
            'name': 'Summer sale extended',
            'conditions': [
                {'condition_type': 'min_quantity', 'operator': '>=', 'value': {'quantity': 2}},
                {'condition_type': 'first_order', 'logic_operator': 'OR', 'priority': 20},
            ],
            'targets': [],
        })

        assert updated.name == 'Summer sale extended'
        assert list(updated.conditions.values_list('condition_type', 'priority')) == [
            ('min_quantity', 10), ('first_order', 20),
        ]
        assert not DiscountTarget.objects.filter(campaign=updated).exists()

    def test_keeps_children_when_not_given(self):
        campaign = create_campaign(campaign_data())
        update_campaign(campaign, {'discount_value': 25})
        assert campaign.conditions.count() == 1
        assert campaign.targets.count() == 1

    def test_patch_never_touches_children(self):
        campaign = create_campaign(campaign_data())
        patched = patch_campaign(campaign, {'is_active': False, 'conditions': []})

        assert patched.is_active is False
        assert patched.conditions.count() == 1

    def test_failed_update_leaves_campaign_as_it_was(self):
        campaign = create_campaign(campaign_data())
        with pytest.raises(ValidationError):
            update_campaign(campaign, {
                'name': 'Broken',
                'conditions': [{'condition_type': 'moon_phase'}],
            })

        fresh = DiscountCampaign.objects.get(pk=campaign.pk)
        assert fresh.name == 'Summer sale'
        assert fresh.conditions.get().condition_type == 'min_cart_value'


def test_delete_cascades_children_but_keeps_usages():
    campaign = create_campaign(campaign_data())
    DiscountUsage.objects.create(campaign=campaign, customer_id=1, orderable_id=10, discount_amount_applied=100)

    delete_campaign(campaign)

    assert not DiscountCampaign.objects.exists()
    assert not DiscountCondition.objects.exists()
    assert not DiscountTarget.objects.exists()
    assert DiscountUsage.objects.count() == 1
