"""
Decimal parsing for stock quantities and machine hours.

Callers turn the ValueError into their own structured error:

    try:
        quantity = parse_decimal(raw)
    except ValueError as e:
        raise StockError('VALIDATION_ERROR', f"quantity: {e}") from None
"""

from decimal import Decimal, InvalidOperation

# Material quantities: DecimalField(max_digits=12, decimal_places=3)
QUANTITY_PLACES = 3
QUANTITY_DIGITS = 12

# Step / queue hours: DecimalField(max_digits=8, decimal_places=2)
HOURS_PLACES = 2
HOURS_DIGITS = 8


def parse_decimal(value, places: int = QUANTITY_PLACES, max_digits: int = QUANTITY_DIGITS) -> Decimal:
    """
    Parse a finite decimal that fits a DecimalField(max_digits, places).

    Accepts Decimal, int, float and numeric strings. Extra trailing
    zeros are fine ("1.5000" with places=3); extra precision is not.

    Raises:
        ValueError: not a number, NaN/Infinity, more than `places`
            decimal places, or too many integer digits
    """
    if value is None or isinstance(value, bool):
        raise ValueError('valor numérico obrigatório')
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"valor não numérico: {value!r}") from None
    if not number.is_finite():
        raise ValueError('valor deve ser finito')
    if abs(number) >= Decimal(10) ** (max_digits - places):
        raise ValueError(f"valor excede {max_digits - places} dígitos inteiros")
    quantum = Decimal(1).scaleb(-places)
    if number != number.quantize(quantum):
        raise ValueError(f"no máximo {places} casas decimais")
    return number.quantize(quantum)
