# promotions/providers.py
"""
Read-only collaborators consulted by the discount engine:
  - CampaignRepository          : active campaigns and usage counts
  - CatalogCategoryProvider     : product <-> category membership
  - OrderHistoryProvider        : "has this customer ordered before?"

Model classes are resolved once through ModelRegistry from settings.DISCOUNTS
and handed in explicitly, nothing reads configuration deep in business logic.
"""

import logging

from django.apps import apps
from django.conf import settings
from django.db.models import Exists, OuterRef, Prefetch, Q
from django.utils import timezone

from .enums import TargetType, TargetAction
from .exceptions import DiscountConfigurationError
from .models import DiscountCampaign, DiscountCondition, DiscountTarget, DiscountUsage

logger = logging.getLogger(__name__)


DEFAULT_DISCOUNT_SETTINGS = {
    'ENABLED': True,
    'PRODUCT_MODEL': 'catalog.Product',
    'CATEGORY_MODEL': 'catalog.Category',
    'ORDER_MODEL': 'orders.Order',
    'DEFAULT_CONDITION_PRIORITY': 10,
}


def discount_settings():
    config = dict(DEFAULT_DISCOUNT_SETTINGS)
    config.update(getattr(settings, 'DISCOUNTS', {}) or {})
    return config


class ModelRegistry:
    """Resolves the configured product / category / order model labels."""

    def __init__(self, product_model=None, category_model=None, order_model=None):
        config = discount_settings()
        self.labels = {
            'product': product_model or config['PRODUCT_MODEL'],
            'category': category_model or config['CATEGORY_MODEL'],
            'order': order_model or config['ORDER_MODEL'],
        }

    def get(self, kind):
        label = self.labels[kind]
        try:
            return apps.get_model(label)
        except (LookupError, ValueError) as e:
            raise DiscountConfigurationError(f"{kind} model '{label}' is not available: {e}") from e


# ─────────────────────────────────────────────────────────────
# CAMPAIGNS
# ─────────────────────────────────────────────────────────────

class CampaignRepository:

    def __init__(self, registry=None):
        self.registry = registry

    def _base_queryset(self):
        return DiscountCampaign.objects.prefetch_related(
            Prefetch('conditions', queryset=DiscountCondition.objects.order_by('priority', 'id')),
            Prefetch('targets', queryset=DiscountTarget.objects.order_by('id')),
        )

    def find_active_in_range(self, now=None):
        """Active, in-date campaigns ordered by priority (highest first)."""
        now = now or timezone.now()
        return list(self._base_queryset().active(now).by_priority('desc'))

    def find_for_product(self, product_id, category_ids, now=None, only_unconditional=False):
        """
        Active campaigns whose apply_to targets reach this product: directly,
        through one of its categories, through an all-products target, or by
        having no apply_to targets at all. ``only_unconditional`` keeps the
        campaigns without conditions.
        """
        now = now or timezone.now()
        targets_product = Q(
            targets__target_action=TargetAction.APPLY_TO,
            targets__target_type=TargetType.PRODUCT,
        ) & (Q(targets__target_id=product_id) | Q(targets__target_id__isnull=True))
        targets_category = Q(
            targets__target_action=TargetAction.APPLY_TO,
            targets__target_type=TargetType.CATEGORY,
        ) & (Q(targets__target_id__in=list(category_ids)) | Q(targets__target_id__isnull=True))

        untargeted = DiscountCampaign.objects.exclude(targets__target_action=TargetAction.APPLY_TO)
        queryset = self._base_queryset().active(now)
        if only_unconditional:
            queryset = queryset.filter(conditions__isnull=True)
        queryset = (
            queryset
            .filter(targets_product | targets_category | Q(pk__in=untargeted.values('pk')))
            .distinct()
            .by_priority('desc')
        )
        return list(queryset)

    def products_with_available_discounts(self, queryset=None, now=None):
        """
        Narrow a product queryset to the products some running campaign
        reaches. A running campaign without apply_to targets, or with a null-id
        product or category target, reaches every product.
        """
        if queryset is None:
            queryset = (self.registry or ModelRegistry()).get('product').objects.all()
        if not discount_settings()['ENABLED']:
            return queryset.none()

        now = now or timezone.now()
        running = DiscountCampaign.objects.active(now)
        if running.exclude(targets__target_action=TargetAction.APPLY_TO).exists():
            return queryset

        targets = DiscountTarget.objects.filter(
            campaign__in=running,
            target_action=TargetAction.APPLY_TO,
        )
        product_targets = targets.filter(target_type=TargetType.PRODUCT)
        category_targets = targets.filter(target_type=TargetType.CATEGORY)
        everything = Q(target_type=TargetType.PRODUCT) | Q(target_type=TargetType.CATEGORY)
        if targets.filter(everything, target_id__isnull=True).exists():
            return queryset

        reached = Q(Exists(product_targets.filter(target_id=OuterRef('pk'))))

        model = queryset.model
        field_names = {f.name for f in model._meta.get_fields()}
        if 'category' in field_names:
            reached |= Q(Exists(category_targets.filter(target_id=OuterRef('category_id'))))
        if 'categories' in field_names:
            field = model._meta.get_field('categories')
            listings = field.remote_field.through.objects.filter(**{
                field.m2m_field_name(): OuterRef('pk'),
                f'{field.m2m_reverse_field_name()}__in': category_targets.values('target_id'),
            })
            reached |= Q(Exists(listings))

        return queryset.filter(reached)

    def by_id(self, campaign_id):
        return self._base_queryset().filter(pk=campaign_id).first()

    def count_usages_by_customer(self, campaign_id, customer_id):
        return DiscountUsage.objects.filter(campaign_id=campaign_id, customer_id=customer_id).count()


# ─────────────────────────────────────────────────────────────
# CATEGORY MEMBERSHIP
# ─────────────────────────────────────────────────────────────

class CatalogCategoryProvider:
    """
    Category membership backed by the product model. Products may carry a
    single ``category`` foreign key, a ``categories`` many-to-many, or both.
    An unavailable model degrades to "no members".
    """

    def __init__(self, registry=None):
        self.registry = registry or ModelRegistry()

    def product_ids_in_category(self, category_id):
        try:
            product_model = self.registry.get('product')
        except DiscountConfigurationError as e:
            logger.warning(f"Category lookup skipped: {e}")
            return set()

        query = Q()
        field_names = {f.name for f in product_model._meta.get_fields()}
        if 'category' in field_names:
            query |= Q(category_id=category_id)
        if 'categories' in field_names:
            query |= Q(categories__id=category_id)
        if not query:
            return set()

        return set(product_model.objects.filter(query).values_list('id', flat=True).distinct())

    def category_ids_for_product(self, product_id):
        try:
            product_model = self.registry.get('product')
        except DiscountConfigurationError as e:
            logger.warning(f"Category lookup skipped: {e}")
            return set()

        product = product_model.objects.filter(pk=product_id).first()
        if product is None:
            return set()

        ids = set()
        if getattr(product, 'category_id', None) is not None:
            ids.add(product.category_id)
        if hasattr(product, 'categories'):
            ids.update(product.categories.values_list('id', flat=True))
        return ids


# ─────────────────────────────────────────────────────────────
# ORDER HISTORY
# ─────────────────────────────────────────────────────────────

class OrderHistoryProvider:

    def __init__(self, registry=None):
        self.registry = registry or ModelRegistry()

    def has_prior_orders(self, customer_id, customer_type=None, exclude_order_id=None):
        try:
            order_model = self.registry.get('order')
        except DiscountConfigurationError as e:
            logger.warning(f"First-order lookup skipped: {e}")
            # Unknown history never grants a first-order discount
            return True

        orders = order_model.objects.filter(customer_id=customer_id)
        concrete = {f.name for f in order_model._meta.concrete_fields}
        if customer_type and 'customer_type' in concrete:
            orders = orders.filter(customer_type=customer_type)
        if exclude_order_id is not None:
            orders = orders.exclude(pk=exclude_order_id)
        return orders.exists()
