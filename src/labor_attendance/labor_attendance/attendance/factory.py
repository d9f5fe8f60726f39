from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import EARLY_CHECKOUT_BLOCK_HOURS, EARLY_CHECKOUT_CONFIRM_HOURS
from .strategies.base import CheckoutStrategy
from .strategies.early_strategy import EarlyCheckoutStrategy
from .strategies.normal_strategy import NormalCheckoutStrategy
from .strategies.too_early_strategy import TooEarlyCheckoutStrategy


@dataclass
class CheckoutStrategyFactory:
    """Factory Pattern: choose the check-out strategy from hours worked.

    Thresholds of 0 disable the corresponding rule.
    """

    block_hours: float = EARLY_CHECKOUT_BLOCK_HOURS
    confirm_hours: float = EARLY_CHECKOUT_CONFIRM_HOURS

    @classmethod
    def disabled(cls) -> "CheckoutStrategyFactory":
        return cls(block_hours=0, confirm_hours=0)

    def for_checkout(self, *, hours_worked: float) -> CheckoutStrategy:
        if hours_worked < self.block_hours:
            return TooEarlyCheckoutStrategy()
        if hours_worked < self.confirm_hours:
            return EarlyCheckoutStrategy()
        return NormalCheckoutStrategy()
