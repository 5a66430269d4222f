import re
from typing import Any, List

from .constants import CNPJ_ROOT_LENGTH

_NON_DIGITS = re.compile(r"\D")


def digits_only(value: Any) -> str:
    """Strip punctuation from a tax-ID; non-strings yield an empty string."""
    if not isinstance(value, str):
        return ""
    return _NON_DIGITS.sub("", value)


def cnpj_root(value: Any) -> str:
    """Return the 8-digit organizational root of a CNPJ.

    Accepts a raw CNPJ string ("12.345.678/0009-10") or a sequence of them,
    in which case only the first element counts. Inputs with fewer than
    eight digits yield "" instead of raising.
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else ""
    digits = digits_only(value)
    if len(digits) < CNPJ_ROOT_LENGTH:
        return ""
    return digits[:CNPJ_ROOT_LENGTH]


def cnpj_roots(values: Any) -> List[str]:
    """Roots of every CNPJ in ``values``; empties dropped, order kept, no repeats."""
    if isinstance(values, str):
        values = [values]
    roots: List[str] = []
    for v in values or ():
        root = cnpj_root(v)
        if root and root not in roots:
            roots.append(root)
    return roots
