# module storefront.utils.money
"""
Conversions monétaires (montant décimal <-> unité mineure) et formatage.

- Les montants sont manipulés en Decimal, jamais en float.
- L'exposant de chaque devise suit l'ISO 4217 (0 pour JPY, 2 pour EUR, 3 pour KWD...).
- L'arrondi est toujours ROUND_HALF_UP (0.005 EUR -> 1 centime).
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, Union

from storefront.errors import InvalidAmount

Amount = Union[Decimal, int, float, str]

_ZERO_DECIMAL = (
    "BIF CLP DJF GNF ISK JPY KMF KRW PYG RWF UGX UYI VND VUV XAF XOF XPF"
)
_THREE_DECIMAL = "BHD IQD JOD KWD LYD OMR TND"
_FOUR_DECIMAL = "CLF UYW"
_TWO_DECIMAL = (
    "AED AFN ALL AMD ANG AOA ARS AUD AWG AZN BAM BBD BDT BGN BMD BND BOB BOV BRL BSD "
    "BTN BWP BYN BZD CAD CDF CHE CHF CHW CNY COP COU CRC CUP CVE CZK DKK DOP DZD EGP "
    "ERN ETB EUR FJD FKP GBP GEL GHS GIP GMD GTQ GYD HKD HNL HTG HUF IDR ILS INR IRR "
    "JMD KES KGS KHR KPW KYD KZT LAK LBP LKR LRD LSL MAD MDL MGA MKD MMK MNT MOP MRU "
    "MUR MVR MWK MXN MXV MYR MZN NAD NGN NIO NOK NPR NZD PAB PEN PGK PHP PKR PLN QAR "
    "RON RSD RUB SAR SBD SCR SDG SEK SGD SHP SLE SLL SOS SRD SSP STN SVC SYP SZL THB "
    "TJS TMT TOP TRY TTD TWD TZS UAH USD USN UYU UZS VED VES WST XCD XCG YER ZAR ZMW "
    "ZWG ZWL"
)

FRACTION_DIGITS: Dict[str, int] = {}
for _codes, _digits in ((_TWO_DECIMAL, 2), (_ZERO_DECIMAL, 0), (_THREE_DECIMAL, 3), (_FOUR_DECIMAL, 4)):
    FRACTION_DIGITS.update({code: _digits for code in _codes.split()})

CURRENCY_SYMBOLS: Dict[str, str] = {
    "EUR": "€", "USD": "$", "GBP": "£", "JPY": "¥", "CNY": "CN¥", "INR": "₹",
    "KRW": "₩", "ILS": "₪", "VND": "₫", "NGN": "₦", "PHP": "₱", "CAD": "CA$",
    "AUD": "A$", "NZD": "NZ$", "HKD": "HK$", "MXN": "MX$", "BRL": "R$", "TWD": "NT$",
    "XAF": "FCFA", "XOF": "F CFA", "XPF": "CFPF", "XCD": "EC$",
}


def _normalize(currency: str) -> str:
    code = str(currency or "").strip().upper()
    if code not in FRACTION_DIGITS:
        raise InvalidAmount(f'Unknown currency "{currency}".')
    return code


def is_known_currency(currency: str) -> bool:
    return str(currency or "").strip().upper() in FRACTION_DIGITS


def fraction_digits(currency: str) -> int:
    """Nombre de décimales ISO 4217 de la devise (InvalidAmount si inconnue)."""
    return FRACTION_DIGITS[_normalize(currency)]


def currency_symbol(currency: str) -> str:
    """Symbole usuel de la devise, ou son code ISO à défaut."""
    code = _normalize(currency)
    return CURRENCY_SYMBOLS.get(code, code)


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidAmount(f'Invalid amount "{amount}".')
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(f'Invalid amount "{amount}".')
    if not value.is_finite():
        raise InvalidAmount(f'Invalid amount "{amount}".')
    return value


def round_amount(amount: Amount, currency: str) -> Decimal:
    """Arrondit un montant (half-up) au nombre de décimales de la devise."""
    digits = fraction_digits(currency)
    return _to_decimal(amount).quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP)


def to_minor_unit(amount: Amount, currency: str) -> int:
    """
    Convertit un montant en unité mineure (centimes pour EUR, yen pour JPY).
    - Soulève InvalidAmount si le montant est négatif/invalide ou la devise inconnue.
    - Ex: to_minor_unit(1000, "EUR") == 100000, to_minor_unit(1000, "JPY") == 1000
    """
    value = _to_decimal(amount)
    if value < 0:
        raise InvalidAmount(f'Amount must not be negative, got "{amount}".')
    rounded = round_amount(value, currency)
    return int(rounded.scaleb(fraction_digits(currency)))


def from_minor_unit(minor_amount: int, currency: str) -> Decimal:
    """
    Conversion inverse: unité mineure -> montant décimal.
    Retourne un Decimal entier pour les devises sans décimales (JPY).
    """
    if isinstance(minor_amount, bool) or not isinstance(minor_amount, int):
        raise InvalidAmount(f'Minor amount must be an integer, got "{minor_amount}".')
    digits = fraction_digits(currency)
    return Decimal(minor_amount).scaleb(-digits).quantize(Decimal(1).scaleb(-digits))


def format_amount(amount: Amount, currency: str, with_symbol: bool = False) -> str:
    """
    Formatage neutre (séparateur de milliers ',' et point décimal):
    - format_amount(1000, "EUR") -> "1,000.00"
    - format_amount(1000, "JPY") -> "1,000"
    - format_amount(1000, "EUR", with_symbol=True) -> "€ 1,000.00"
    """
    digits = fraction_digits(currency)
    formatted = f"{round_amount(amount, currency):,.{digits}f}"
    if with_symbol:
        return f"{currency_symbol(currency)} {formatted}"
    return formatted


def format_from_minor_unit(minor_amount: int, currency: str, with_symbol: bool = False) -> str:
    return format_amount(from_minor_unit(minor_amount, currency), currency, with_symbol=with_symbol)
