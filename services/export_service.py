"""CSV export of the expense list."""
import math
from decimal import Decimal
from numbers import Real
from typing import Any, Iterable, Mapping

CSV_HEADERS = ['Date', 'Category', 'Description', 'Amount']


def format_amount(value: Any) -> str:
    """
    Renders a number the way the browser client always has (JavaScript's
    Number to string): 12.5, 12 for 12.0, 1e-7, 1e+21.

    Uses the shortest round-tripping digits Python already produces for
    repr(), then places the decimal point by JavaScript's rules.
    """
    if isinstance(value, bool) or value is None:
        return ""
    if not isinstance(value, Real):
        return str(value)
    value = float(value)
    if not math.isfinite(value):
        return ""
    if value == 0:
        return "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = ''.join(str(d) for d in digit_tuple).rstrip('0')
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    # n is where the decimal point falls relative to the first digit
    n = exponent + k

    if k <= n <= 21:
        text = digits + '0' * (n - k)
    elif 0 < n <= 21:
        text = digits[:n] + '.' + digits[n:]
    elif -6 < n <= 0:
        text = '0.' + '0' * (-n) + digits
    else:
        e = n - 1
        mantissa = digits[0] + ('.' + digits[1:] if k > 1 else '')
        text = mantissa + 'e' + ('+' if e >= 0 else '-') + str(abs(e))
    return ('-' if sign else '') + text


def _quote(text: Any) -> str:
    text = "" if text is None else str(text)
    return '"' + text.replace('"', '""') + '"'


def export_csv(expenses: Iterable[Mapping[str, Any]]) -> str:
    """
    Builds the export text. Lines are joined with '\\n' and there is no
    trailing newline; only the description is quoted.
    """
    lines = [','.join(CSV_HEADERS)]
    for e in expenses:
        lines.append(','.join([
            str(e.get('date') or ''),
            str(e.get('category') or ''),
            _quote(e.get('description')),
            format_amount(e.get('amount')),
        ]))
    return '\n'.join(lines)
