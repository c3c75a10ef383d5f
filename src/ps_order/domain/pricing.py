"""Print quote shown before payment. Amounts in paise."""
from dataclasses import dataclass

from src.ps_common.enums import PaperSize
from src.ps_order.domain.models import Order


@dataclass(frozen=True)
class PrintRates:
    base_cents: int = 100
    color_cents: int = 400
    glossy_cents: int = 300
    matte_cents: int = 200


DEFAULT_RATES = PrintRates()


def unit_price_cents(order: Order, rates: PrintRates = DEFAULT_RATES) -> int:
    price = rates.base_cents
    if order.is_color_print:
        price += rates.color_cents
    if order.paper_size == PaperSize.GLOSSY_PRINT:
        price += rates.glossy_cents
    elif order.paper_size == PaperSize.MATTE_PRINT:
        price += rates.matte_cents
    return price


def quote_cents(order: Order, rates: PrintRates = DEFAULT_RATES) -> int:
    return unit_price_cents(order, rates) * order.copies
