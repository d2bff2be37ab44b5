"""
Helpers de validación para direcciones y montos de tokens
"""

import re
from decimal import Context, Decimal, InvalidOperation

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-fA-F]{40}$")

# Montos de tokens ERC20 (18 decimales) sumados sin perder precisión
DECIMAL_CONTEXT = Context(prec=80)


class InvalidAddressError(ValueError):
    """La dirección no es un address hexadecimal de 20 bytes"""
    pass


class InvalidAmountError(ValueError):
    """El monto no es un decimal finito y no negativo"""
    pass


def normalize_address(address: str | None) -> str:
    """
    Valida y normaliza una dirección a minúsculas.

    Todas las keys del store usan la forma normalizada, así
    "0xAbC..." y "0xabc..." son el mismo usuario.
    """
    if not address or not ADDRESS_PATTERN.match(address.strip()):
        raise InvalidAddressError(f"Invalid address: {address!r}")
    return address.strip().lower()


def parse_amount(value: str | None) -> Decimal:
    """Parsea un monto string a Decimal; None o vacío significa cero."""
    if value is None or str(value).strip() == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmountError(f"Invalid token amount: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise InvalidAmountError(f"Invalid token amount: {value!r}")
    return amount


def format_decimal(value: Decimal) -> str:
    """Serializa sin exponente ni ceros a la derecha ("15", "0.25")."""
    if value == 0:
        return "0"
    return format(value.normalize(DECIMAL_CONTEXT), "f")


def add_amounts(current: str, delta: Decimal) -> str:
    """Suma exacta de un acumulador string-decimal más un delta."""
    total = DECIMAL_CONTEXT.add(parse_amount(current), delta)
    return format_decimal(total)
