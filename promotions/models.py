# promotions/models.py
from django.db import models
from django.db.models import Q, F
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.utils import timezone

from .enums import (
    DiscountType, ConditionType, ConditionOperator, LogicOperator,
    TargetType, TargetAction, OrderableType,
)


class DiscountCampaignQuerySet(models.QuerySet):

    def active(self, now=None):
        """Active campaigns whose date window contains ``now``."""
        now = now or timezone.now()
        return self.filter(is_active=True, start_date__lte=now, end_date__gte=now)

    def of_type(self, discount_type):
        return self.filter(discount_type=discount_type)

    def by_priority(self, direction='desc'):
        return self.order_by('-priority' if direction == 'desc' else 'priority', 'id')


class DiscountCampaign(models.Model):
    """A configured discount offer with eligibility rules and a value"""

    code = models.CharField(max_length=50, unique=True, null=True, blank=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    discount_type = models.CharField(max_length=30, choices=DiscountType.choices)
    # Percentage points or cents depending on discount_type
    discount_value = models.PositiveIntegerField(validators=[MinValueValidator(0)])

    # Validity
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    is_active = models.BooleanField(default=True)

    # Stacking
    priority = models.IntegerField(default=0)  # higher is evaluated first
    is_stackable = models.BooleanField(default=False)

    # Limitations
    max_uses_total = models.PositiveIntegerField(null=True, blank=True)
    max_uses_per_customer = models.PositiveIntegerField(null=True, blank=True)
    current_uses = models.PositiveIntegerField(default=0)

    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DiscountCampaignQuerySet.as_manager()

    class Meta:
        db_table = 'discount_campaigns'
        ordering = ['-priority', 'id']
        indexes = [
            models.Index(fields=['is_active', 'start_date', 'end_date']),
            models.Index(fields=['priority']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gt=F('start_date')),
                name='discount_campaign_end_after_start',
            ),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({'end_date': 'End date must be after the start date.'})
        if self.max_uses_total is not None and self.current_uses > self.max_uses_total:
            raise ValidationError({'current_uses': 'Current uses cannot exceed the total usage limit.'})

    def is_running(self, now=None):
        now = now or timezone.now()
        return self.is_active and self.start_date <= now <= self.end_date

    def has_reached_limit(self):
        if self.max_uses_total is None:
            return False
        return self.current_uses >= self.max_uses_total

    def customer_usage_count(self, customer_id):
        return DiscountUsage.objects.filter(campaign_id=self.pk, customer_id=customer_id).count()

    def customer_has_reached_limit(self, customer_id):
        if customer_id is None or self.max_uses_per_customer is None:
            return False
        return self.customer_usage_count(customer_id) >= self.max_uses_per_customer


class DiscountCondition(models.Model):
    """A predicate that must hold for the campaign to apply"""
    campaign = models.ForeignKey(DiscountCampaign, on_delete=models.CASCADE, related_name='conditions')

    condition_type = models.CharField(max_length=30, choices=ConditionType.choices)
    operator = models.CharField(max_length=10, choices=ConditionOperator.choices, null=True, blank=True)
    # Parameter bag, shape depends on condition_type
    # e.g. {"amount": 5000}, {"quantity": 3}, {"customer_ids": [..]}, {"product_ids": [..]}
    value = models.JSONField(default=dict, blank=True)

    # How this condition combines with the result of the ones before it
    logic_operator = models.CharField(max_length=3, choices=LogicOperator.choices, null=True, blank=True)
    priority = models.IntegerField(default=10)

    class Meta:
        db_table = 'discount_conditions'
        ordering = ['priority', 'id']
        indexes = [
            models.Index(fields=['campaign', 'priority']),
        ]

    def __str__(self):
        return f"{self.condition_type} {self.operator or ''} {self.value}".strip()


class DiscountTarget(models.Model):
    """What a campaign applies to: a product, a category, the cart or shipping"""
    campaign = models.ForeignKey(DiscountCampaign, on_delete=models.CASCADE, related_name='targets')

    target_type = models.CharField(max_length=20, choices=TargetType.choices)
    # Null means "every instance of target_type"
    target_id = models.PositiveBigIntegerField(null=True, blank=True)
    target_action = models.CharField(max_length=20, choices=TargetAction.choices, default=TargetAction.APPLY_TO)

    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'discount_targets'
        ordering = ['id']
        indexes = [
            models.Index(fields=['campaign', 'target_action']),
            models.Index(fields=['target_type', 'target_id']),
        ]

    def __str__(self):
        return f"{self.target_action}: {self.target_type}#{self.target_id or '*'}"


class DiscountUsage(models.Model):
    """Audit record of a discount that was actually granted"""
    # No cascade: usage history survives campaign deletion
    campaign = models.ForeignKey(
        DiscountCampaign,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name='usages',
    )
    customer_id = models.PositiveBigIntegerField(null=True, blank=True, db_index=True)

    orderable_type = models.CharField(max_length=30, choices=OrderableType.choices, default=OrderableType.ORDER)
    orderable_id = models.PositiveBigIntegerField()

    discount_amount_applied = models.PositiveIntegerField(default=0)
    used_at = models.DateTimeField(default=timezone.now)

    # Snapshot: campaign name, discount type, affected items
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'discount_usages'
        ordering = ['-used_at']
        indexes = [
            models.Index(fields=['campaign', 'customer_id']),
            models.Index(fields=['orderable_type', 'orderable_id']),
        ]

    def __str__(self):
        return f"Campaign {self.campaign_id} on {self.orderable_type} {self.orderable_id}"
