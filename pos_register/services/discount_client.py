"""Discount API client - HTTP calls to the external discount engine."""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping

import requests

from pos_register.exceptions import DiscountUnavailableError

logger = logging.getLogger(__name__)

DISCOUNT_ENDPOINT = '/api/v1/discount'


@dataclass
class DiscountApiConfig:
    """Connection settings for the discount API (timeouts in seconds)."""
    base_url: str = 'http://localhost:8080'
    connect_timeout: float = 5.0
    read_timeout: float = 10.0
    enabled: bool = True

    @property
    def discount_url(self) -> str:
        return self.base_url.rstrip('/') + DISCOUNT_ENDPOINT

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'DiscountApiConfig':
        return cls(
            base_url=config.get('DISCOUNT_API_BASE_URL', cls.base_url),
            connect_timeout=float(config.get('DISCOUNT_API_CONNECT_TIMEOUT', cls.connect_timeout)),
            read_timeout=float(config.get('DISCOUNT_API_READ_TIMEOUT', cls.read_timeout)),
            enabled=bool(config.get('DISCOUNT_API_ENABLED', cls.enabled)),
        )


def _decimal_field(data: Dict[str, Any], key: str) -> Decimal:
    value = data.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'"{key}" must be a JSON number, got {value!r}')
    amount = Decimal(str(value))
    if not amount.is_finite():
        raise ValueError(f'"{key}" must be finite, got {value!r}')
    return amount


@dataclass(frozen=True)
class DiscountResponse:
    """Decoded body of a successful discount API call."""
    original_total: Decimal
    discount_amount: Decimal
    final_total: Decimal
    applied_discounts: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any) -> 'DiscountResponse':
        """
        Decode the API JSON body.

        Raises:
            ValueError: if the body is not an object or a field has the wrong type.
        """
        if not isinstance(data, dict):
            raise ValueError('response body is not a JSON object')

        applied = data.get('appliedDiscounts', [])
        if applied is None:
            applied = []
        if not isinstance(applied, list) or not all(isinstance(label, str) for label in applied):
            raise ValueError('"appliedDiscounts" must be a list of strings')

        discount_amount = _decimal_field(data, 'discountAmount')
        if discount_amount < 0:
            raise ValueError('"discountAmount" cannot be negative')

        return cls(
            original_total=_decimal_field(data, 'originalTotal'),
            discount_amount=discount_amount,
            final_total=_decimal_field(data, 'finalTotal'),
            applied_discounts=list(applied),
        )

    @property
    def has_discounts(self) -> bool:
        return self.discount_amount > 0 and bool(self.applied_discounts)


def build_request_body(lines) -> Dict[str, Any]:
    """Serialize ledger lines into the discount API request body."""
    return {
        'items': [
            {
                'product': {
                    'upc': line.product.code,
                    'name': line.product.name,
                    'price': float(line.product.unit_price),
                },
                'quantity': line.quantity,
            }
            for line in lines
        ]
    }


class DiscountApiClient:
    """Client for the discount calculation API."""

    def __init__(self, config: DiscountApiConfig, session: requests.Session = None):
        """
        Initialize discount API client.

        Args:
            config: API settings (URL, timeouts, enabled flag)
            session: optional requests session, mainly for connection reuse
        """
        self.config = config
        self.http = session or requests.Session()
        self.headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }

    def calculate_discount(self, lines) -> DiscountResponse:
        """
        POST the ledger lines to the discount endpoint.

        Exactly one attempt is made, bounded by (connect_timeout, read_timeout).

        Returns:
            DiscountResponse decoded from a 200 response

        Raises:
            DiscountUnavailableError: on any failure (disabled, network error,
                timeout, non-200 status, malformed body)
        """
        if not self.config.enabled:
            raise DiscountUnavailableError('Discount API is disabled')

        url = self.config.discount_url
        payload = build_request_body(lines)
        timeout = (self.config.connect_timeout, self.config.read_timeout)

        try:
            response = self.http.post(url, json=payload, headers=self.headers, timeout=timeout)
        except requests.Timeout as e:
            raise DiscountUnavailableError(f'Discount API timed out: {e}')
        except requests.RequestException as e:
            raise DiscountUnavailableError(f'Failed to call discount API: {e}')

        if response.status_code != 200:
            raise DiscountUnavailableError(
                f'API returned error status: {response.status_code} - {response.text[:200]}'
            )

        try:
            return DiscountResponse.from_json(response.json())
        except ValueError as e:
            # json decode errors are ValueError subclasses too
            raise DiscountUnavailableError(f'Failed to parse API response: {e}')

    def is_api_available(self) -> bool:
        """Check if the API base URL answers with a non-5xx status."""
        try:
            response = self.http.get(self.config.base_url, timeout=2)
            return response.status_code < 500
        except requests.RequestException:
            return False
