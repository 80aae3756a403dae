"""Order pricing

Pure functions: the same line items and catalog facts always produce the same
totals. Money is handled as `Decimal` and rounded half-up to cents.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Union
from uuid import UUID

from app.config import settings
from app.orders.exceptions import (
    InvalidQuantity,
    ItemUnavailable,
    MaximumOrderExceeded,
    MinimumOrderNotMet,
)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PricingRules:
    """Platform-wide order limits"""
    min_order_value: Decimal
    max_order_value: Decimal
    tax_rate: Decimal
    max_quantity_per_item: int

    @classmethod
    def from_settings(cls) -> "PricingRules":
        return cls(
            min_order_value=settings.min_order_value,
            max_order_value=settings.max_order_value,
            tax_rate=settings.tax_rate,
            max_quantity_per_item=settings.max_quantity_per_item,
        )


@dataclass(frozen=True)
class LineItem:
    menu_item_id: UUID
    quantity: int


@dataclass(frozen=True)
class CatalogPrice:
    price: Decimal
    is_available: bool


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    delivery_fee: Decimal
    tax: Decimal
    total: Decimal


def to_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """Convert to a Decimal rounded to cents"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_totals(
    line_items: Iterable[LineItem],
    catalog_prices: Dict[UUID, CatalogPrice],
    store_delivery_fee,
    store_minimum_order,
    rules: PricingRules = None,
) -> PriceBreakdown:
    """Price a basket against catalog facts and the store's ordering terms"""
    rules = rules or PricingRules.from_settings()
    line_items = list(line_items)

    for item in line_items:
        entry = catalog_prices.get(item.menu_item_id)
        if entry is None or not entry.is_available:
            raise ItemUnavailable(menu_item_id=str(item.menu_item_id))

    for item in line_items:
        if item.quantity < 1 or item.quantity > rules.max_quantity_per_item:
            raise InvalidQuantity(
                f"Quantity must be between 1 and {rules.max_quantity_per_item}",
                menu_item_id=str(item.menu_item_id),
                quantity=item.quantity,
            )

    subtotal = to_money(
        sum(
            (to_money(catalog_prices[item.menu_item_id].price) * item.quantity for item in line_items),
            Decimal("0"),
        )
    )

    minimum_order = to_money(store_minimum_order)
    if subtotal < minimum_order:
        raise MinimumOrderNotMet(
            f"Minimum order value of ${minimum_order} not met",
            subtotal=str(subtotal),
        )

    delivery_fee = to_money(store_delivery_fee)
    tax = to_money(subtotal * rules.tax_rate)
    total = subtotal + delivery_fee + tax

    if total < rules.min_order_value:
        raise MinimumOrderNotMet(
            f"Minimum order value of ${rules.min_order_value} not met",
            total=str(total),
        )
    if total > rules.max_order_value:
        raise MaximumOrderExceeded(
            f"Maximum order value of ${rules.max_order_value} exceeded",
            total=str(total),
        )

    return PriceBreakdown(subtotal=subtotal, delivery_fee=delivery_fee, tax=tax, total=total)


def line_total(unit_price, quantity: int) -> Decimal:
    return to_money(to_money(unit_price) * quantity)
