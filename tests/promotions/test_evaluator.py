from datetime import timedelta

import pytest
from django.utils import timezone

from promotions.enums import ConditionType, DiscountScope
from promotions.models import DiscountUsage
from promotions.providers import CampaignRepository
from promotions.services import build_discount_service
from tests.conftest import cart_target, make_context, product_target, shipment_target

pytestmark = pytest.mark.django_db


def min_cart_value(amount):
    return {'condition_type': ConditionType.MIN_CART_VALUE, 'operator': '>=', 'value': {'amount': amount}}


class TestFindApplicable:

    def test_min_cart_value_threshold(self, engine, make_campaign):
        campaign = make_campaign(conditions=[min_cart_value(5000)])

        assert engine.evaluator.find_applicable(make_context((1, 1, 4000))) == []
        assert engine.evaluator.find_applicable(make_context((1, 1, 5000))) == [campaign]

    def test_sorted_by_priority_descending(self, engine, make_campaign):
        low = make_campaign(priority=1)
        high = make_campaign(priority=50)
        middle = make_campaign(priority=10)

        assert engine.evaluator.find_applicable(make_context((1, 1, 100))) == [high, middle, low]

    def test_inactive_and_out_of_window_campaigns_are_skipped(self, engine, make_campaign):
        now = timezone.now()
        make_campaign(is_active=False)
        make_campaign(start_date=now + timedelta(days=1), end_date=now + timedelta(days=2))
        make_campaign(start_date=now - timedelta(days=5), end_date=now - timedelta(days=1))
        running = make_campaign()

        assert engine.evaluator.find_applicable(make_context((1, 1, 100))) == [running]

    def test_total_usage_limit(self, engine, make_campaign):
        make_campaign(max_uses_total=3, current_uses=3)
        assert engine.evaluator.find_applicable(make_context((1, 1, 100))) == []

    def test_per_customer_usage_limit(self, engine, make_campaign):
        campaign = make_campaign(max_uses_per_customer=1)
        DiscountUsage.objects.create(campaign=campaign, customer_id=5, orderable_id=1)

        assert engine.evaluator.find_applicable(make_context((1, 1, 100), customer_id=5)) == []
        assert engine.evaluator.find_applicable(make_context((1, 1, 100), customer_id=6)) == [campaign]
        # guests are not limited per customer
        assert engine.evaluator.find_applicable(make_context((1, 1, 100))) == [campaign]

    def test_uncovered_target_is_rejected(self, engine, make_campaign):
        make_campaign(targets=[product_target(77)])
        assert engine.evaluator.find_applicable(make_context((1, 1, 100))) == []

    def test_date_range_condition_judged_at_the_same_instant(self, engine, make_campaign):
        now = timezone.now()
        campaign = make_campaign(
            end_date=now + timedelta(days=2),
            conditions=[{
                'condition_type': ConditionType.DATE_RANGE,
                'value': {
                    'start': (now + timedelta(hours=5)).isoformat(),
                    'end': (now + timedelta(hours=20)).isoformat(),
                },
            }],
        )
        context = make_context((1, 1, 100))

        assert engine.evaluator.find_applicable(context, 'all', now=now) == []
        assert engine.evaluator.find_applicable(context, 'all', now=now + timedelta(hours=10)) == [campaign]
        assert engine.evaluator.find_applicable(context, 'all', now=now + timedelta(hours=30)) == []


class TestScopes:

    @pytest.fixture
    def campaigns(self, make_campaign):
        return {
            'product': make_campaign(priority=3, targets=[product_target()]),
            'cart': make_campaign(priority=2, targets=[cart_target()]),
            'shipping': make_campaign(priority=1, targets=[shipment_target()]),
        }

    def test_all_keeps_everything(self, engine, campaigns):
        found = engine.evaluator.find_applicable(make_context((1, 1, 100)), DiscountScope.ALL)
        assert found == [campaigns['product'], campaigns['cart'], campaigns['shipping']]

    @pytest.mark.parametrize('scope', ['products', 'cart', 'shipping'])
    def test_single_scope(self, engine, campaigns, scope):
        expected = {'products': 'product', 'cart': 'cart', 'shipping': 'shipping'}[scope]
        assert engine.evaluator.find_applicable(make_context((1, 1, 100)), scope) == [campaigns[expected]]


class TestIsolation:

    def test_one_broken_campaign_does_not_stop_the_others(self, engine, make_campaign):
        make_campaign(priority=5, conditions=[
            {'condition_type': ConditionType.MIN_CART_VALUE, 'operator': '>=', 'value': {'wrong': 1}},
        ])
        healthy = make_campaign(priority=1)

        assert engine.evaluator.find_applicable(make_context((1, 1, 100))) == [healthy]

    def test_repository_is_queried_once(self, category_provider, order_history, make_campaign):
        class CountingRepository(CampaignRepository):
            calls = 0

            def find_active_in_range(self, now=None):
                CountingRepository.calls += 1
                return super().find_active_in_range(now)

        make_campaign()
        make_campaign()
        service = build_discount_service(
            repository=CountingRepository(), category_provider=category_provider, order_history=order_history,
        )
        service.apply_discounts(make_context((1, 1, 100)))
        assert CountingRepository.calls == 1
