# promotions/exceptions.py


class DiscountError(Exception):
    pass


class DiscountConfigurationError(DiscountError):
    """A configured model label (product, category, order) cannot be resolved."""
    pass


class UsageLimitExceeded(DiscountError):
    """The campaign reached max_uses_total before this usage could be counted."""

    def __init__(self, campaign_id):
        self.campaign_id = campaign_id
        super().__init__(f"Campaign {campaign_id} has reached its usage limit")
