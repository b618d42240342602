"""
Discount service - wraps the discount API client with fallback behavior.

The resolver never raises: every path returns a DiscountResult, and any API
failure becomes a FALLBACK result with zero discount.
"""
import enum
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence

from pos_register.exceptions import DiscountUnavailableError
from pos_register.services.discount_client import DiscountApiClient, DiscountApiConfig, DiscountResponse

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


class DiscountStatus(str, enum.Enum):
    SUCCESS = 'SUCCESS'      # API call succeeded
    FALLBACK = 'FALLBACK'    # API failed, no discount applied
    DISABLED = 'DISABLED'    # Service disabled by configuration
    NO_ITEMS = 'NO_ITEMS'    # Nothing to price


@dataclass(frozen=True)
class DiscountResult:
    status: DiscountStatus
    discount_amount: Decimal = ZERO
    applied_discounts: List[str] = field(default_factory=list)
    message: str = ''
    original_total: Decimal = ZERO
    final_total: Decimal = ZERO

    @classmethod
    def success(cls, response: DiscountResponse) -> 'DiscountResult':
        return cls(
            status=DiscountStatus.SUCCESS,
            discount_amount=response.discount_amount,
            applied_discounts=list(response.applied_discounts),
            message='Discount calculated successfully',
            original_total=response.original_total,
            final_total=response.final_total,
        )

    @classmethod
    def fallback(cls, subtotal: Decimal, reason: str) -> 'DiscountResult':
        return cls(
            status=DiscountStatus.FALLBACK,
            message=f'API unavailable, no discount applied: {reason}',
            original_total=subtotal,
            final_total=subtotal,
        )

    @classmethod
    def disabled(cls, subtotal: Decimal) -> 'DiscountResult':
        return cls(
            status=DiscountStatus.DISABLED,
            message='Discount service is disabled',
            original_total=subtotal,
            final_total=subtotal,
        )

    @classmethod
    def no_items(cls) -> 'DiscountResult':
        return cls(status=DiscountStatus.NO_ITEMS, message='No items in transaction')

    @property
    def has_discount(self) -> bool:
        return self.discount_amount > 0 and bool(self.applied_discounts)


def _subtotal(lines) -> Decimal:
    return sum((line.total for line in lines), ZERO)


class DiscountResolver:
    """Resolves the discount for a set of ledger lines, degrading to zero discount."""

    def __init__(self, config: DiscountApiConfig, client: Optional[DiscountApiClient] = None):
        self.config = config
        self.client = client or DiscountApiClient(config)
        self.last_call_successful = True

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def resolve(self, lines: Sequence) -> DiscountResult:
        """Return the discount for lines. One API attempt at most, never raises."""
        lines = list(lines or [])
        if not lines:
            return DiscountResult.no_items()

        subtotal = _subtotal(lines)
        # enabled == True means "attempt the call"
        if self.config.enabled is not True:
            return DiscountResult.disabled(subtotal)

        try:
            response = self.client.calculate_discount(lines)
        except DiscountUnavailableError as e:
            self.last_call_successful = False
            logger.warning(f"[DISCOUNT] Fallback to no discount: {e.message}")
            return DiscountResult.fallback(subtotal, e.message)
        except Exception as e:
            self.last_call_successful = False
            logger.error(f"[DISCOUNT] Unexpected error calling discount API: {e}")
            return DiscountResult.fallback(subtotal, str(e))

        self.last_call_successful = True
        logger.info(
            f"[DISCOUNT] {response.discount_amount} off {response.original_total} "
            f"({', '.join(response.applied_discounts) or 'no labels'})"
        )
        return DiscountResult.success(response)

    def is_api_available(self) -> bool:
        return self.config.enabled and self.client.is_api_available()
