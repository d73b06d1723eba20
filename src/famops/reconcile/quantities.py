"""
Famops - Quantity merge strategies and item name keys.

Two strategies exist on purpose and must not be unified:

- concat_quantities: used when aggregating freshly generated ingredients.
  Units are not normalized at generation time, so quantities are joined as
  text ("2 lbs" + "1 lb" -> "2 lbs + 1 lb").
- sum_quantities: used when merging into an existing list after the fact.
  Quantities are treated as bare numbers and added.
"""


def item_key(name: str | None) -> str:
    """Merge identity of a list item within its list."""
    return str(name or "").strip().lower()


def concat_quantities(current: str, incoming: str) -> str:
    return f"{current} + {incoming}"


def _leading_float(value: object) -> float | None:
    """Mimic parseFloat: read the longest numeric prefix, or None."""
    text = str(value if value is not None else "").strip()
    end = 0
    seen_digit = seen_dot = False
    for i, ch in enumerate(text):
        if ch.isdigit():
            seen_digit = True
            end = i + 1
        elif ch == "." and not seen_dot:
            seen_dot = True
        elif ch in "+-" and i == 0:
            continue
        else:
            break
    if not seen_digit:
        return None
    return float(text[:end])


def format_quantity(value: float) -> str:
    return str(int(value)) if value == int(value) else str(value)


def sum_quantities(current: object, incoming: object = None, *, empty_current: float = 0.0) -> str:
    """
    Numeric merge of two quantities.

    A missing incoming quantity adds 1 and a missing current quantity counts
    as `empty_current`. If either side is not numeric the result is "1".
    """
    prev = empty_current if current in (None, "") else _leading_float(current)
    add = 1.0 if incoming in (None, "") else _leading_float(incoming)
    if prev is None or add is None:
        return "1"
    return format_quantity(prev + add)
