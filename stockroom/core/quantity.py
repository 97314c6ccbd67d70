from decimal import Decimal, ROUND_HALF_UP

QUANTITY_QUANT = Decimal("0.01")
ZERO_QUANTITY = Decimal("0.00")


def to_quantity(value: Decimal | int | float | str | None) -> Decimal:
    """Normalize to the NUMERIC(10,2) scale used by every quantity column."""
    if value is None:
        return ZERO_QUANTITY
    return Decimal(str(value)).quantize(QUANTITY_QUANT, rounding=ROUND_HALF_UP)
