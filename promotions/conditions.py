# promotions/conditions.py
"""
Condition matching.

Each condition type is handled by a small evaluator object registered in a
ConditionMatcher keyed by ConditionType. Unknown types, malformed value bags and
unknown operators all evaluate to False so one bad campaign never aborts the
evaluation of the others.
"""

import logging

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .enums import ConditionType, ConditionOperator, LogicOperator

logger = logging.getLogger(__name__)


def compare_values(actual, operator, expected):
    """Compare ``actual`` against ``expected``; ``in``/``not_in`` treat expected as a set."""
    if operator == ConditionOperator.GREATER_THAN_OR_EQUAL:
        return actual >= expected
    if operator == ConditionOperator.GREATER_THAN:
        return actual > expected
    if operator == ConditionOperator.LESS_THAN_OR_EQUAL:
        return actual <= expected
    if operator == ConditionOperator.LESS_THAN:
        return actual < expected
    if operator == ConditionOperator.EQUALS:
        return actual == expected
    if operator == ConditionOperator.NOT_EQUALS:
        return actual != expected
    if operator == ConditionOperator.IN:
        return actual in _as_collection(expected)
    if operator == ConditionOperator.NOT_IN:
        return actual not in _as_collection(expected)
    return False


def _as_collection(value):
    if isinstance(value, (list, tuple, set, frozenset)):
        return value
    return [value]


# ─────────────────────────────────────────────────────────────
# EVALUATORS
# ─────────────────────────────────────────────────────────────

class ConditionEvaluator:
    condition_type = None

    def supports(self, condition_type):
        return condition_type == self.condition_type

    def evaluate(self, condition, context, now=None):
        raise NotImplementedError


class MinCartValueEvaluator(ConditionEvaluator):
    condition_type = ConditionType.MIN_CART_VALUE

    def evaluate(self, condition, context, now=None):
        return compare_values(context.cart_total, condition.operator, condition.value['amount'])


class MinQuantityEvaluator(ConditionEvaluator):
    condition_type = ConditionType.MIN_QUANTITY

    def evaluate(self, condition, context, now=None):
        return compare_values(context.total_quantity, condition.operator, condition.value['quantity'])


class CustomerSegmentEvaluator(ConditionEvaluator):
    # Membership test only, the operator is ignored
    condition_type = ConditionType.CUSTOMER_SEGMENT

    def evaluate(self, condition, context, now=None):
        if context.customer_id is None:
            return False
        # Stored ids may be strings or numbers
        customer_ids = {str(i) for i in condition.value.get('customer_ids') or []}
        return str(context.customer_id) in customer_ids


class HasProductEvaluator(ConditionEvaluator):
    condition_type = ConditionType.HAS_PRODUCT

    def evaluate(self, condition, context, now=None):
        return context.has_any_product(condition.value.get('product_ids') or [])


class FirstOrderEvaluator(ConditionEvaluator):
    condition_type = ConditionType.FIRST_ORDER

    def __init__(self, order_history):
        self.order_history = order_history

    def evaluate(self, condition, context, now=None):
        if not context.customer_id:
            return False
        exclude = context.order.pk if context.is_post_order else None
        return not self.order_history.has_prior_orders(
            context.customer_id, context.customer_type, exclude_order_id=exclude
        )


class DateRangeEvaluator(ConditionEvaluator):
    """
    Structural window check on top of the campaign's own start/end dates:
    value = {"start": <iso datetime>, "end": <iso datetime>}, both optional.
    """
    condition_type = ConditionType.DATE_RANGE

    def __init__(self, clock=timezone.now):
        self.clock = clock

    def evaluate(self, condition, context, now=None):
        now = now or self.clock()
        start = _parse(condition.value.get('start'))
        end = _parse(condition.value.get('end'))
        if start and now < start:
            return False
        if end and now > end:
            return False
        return True


def _parse(value):
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError(f"Invalid datetime: {value!r}")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


# ─────────────────────────────────────────────────────────────
# MATCHER
# ─────────────────────────────────────────────────────────────

class ConditionMatcher:

    def __init__(self, evaluators=()):
        self._evaluators = {}
        for evaluator in evaluators:
            self.register(evaluator)

    def register(self, evaluator):
        self._evaluators[str(evaluator.condition_type)] = evaluator

    def types(self):
        return list(self._evaluators)

    def evaluate(self, condition, context, now=None):
        """Truth value of one condition at ``now``; failures are treated as non-matching."""
        evaluator = self._evaluators.get(condition.condition_type)
        if evaluator is None:
            logger.debug(f"No evaluator for condition type '{condition.condition_type}'")
            return False
        try:
            return bool(evaluator.evaluate(condition, context, now=now))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(
                f"Condition {condition.pk} ({condition.condition_type}) of campaign "
                f"{condition.campaign_id} is malformed: {type(e).__name__}: {e}"
            )
            return False

    def evaluate_all(self, conditions, context, now=None):
        """
        Combine conditions left to right in ascending priority. Each condition's
        own logic_operator joins it to the running result (OR, else AND).
        No conditions means the campaign passes.
        """
        result = True
        for condition in sorted(conditions, key=lambda c: (c.priority, c.pk or 0)):
            met = self.evaluate(condition, context, now=now)
            if condition.logic_operator == LogicOperator.OR:
                result = result or met
            else:
                result = result and met
        return result


def build_condition_matcher(order_history):
    return ConditionMatcher([
        MinCartValueEvaluator(),
        MinQuantityEvaluator(),
        CustomerSegmentEvaluator(),
        HasProductEvaluator(),
        FirstOrderEvaluator(order_history),
        DateRangeEvaluator(),
    ])
