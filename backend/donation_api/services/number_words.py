"""English words for receipt amounts.

Supports ``0 <= n < 10**15``; the largest scale word is "Trillion".
"""

from decimal import ROUND_HALF_UP, Decimal

_ONES = [
    "",
    "One",
    "Two",
    "Three",
    "Four",
    "Five",
    "Six",
    "Seven",
    "Eight",
    "Nine",
    "Ten",
    "Eleven",
    "Twelve",
    "Thirteen",
    "Fourteen",
    "Fifteen",
    "Sixteen",
    "Seventeen",
    "Eighteen",
    "Nineteen",
]

_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

_SCALES = ["", "Thousand", "Million", "Billion", "Trillion"]

MAX_SUPPORTED = 1000 ** len(_SCALES) - 1


def _chunk_to_words(n: int) -> str:
    """Words for 1..999."""
    if n >= 100:
        rest = _chunk_to_words(n % 100)
        head = f"{_ONES[n // 100]} Hundred"
        return f"{head} {rest}" if rest else head
    if n >= 20:
        tens, ones = divmod(n, 10)
        return f"{_TENS[tens]}-{_ONES[ones]}" if ones else _TENS[tens]
    return _ONES[n]


def number_to_words(n: int) -> str:
    """Return ``n`` in English words, e.g. 1500 -> "One Thousand Five Hundred"."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"expected int, got {type(n).__name__}")
    if n < 0:
        raise ValueError("negative amounts have no receipt wording")
    if n > MAX_SUPPORTED:
        raise ValueError(f"{n} exceeds the largest supported scale ({_SCALES[-1]})")
    if n == 0:
        return "Zero"

    parts: list[str] = []
    for scale in _SCALES:
        n, chunk = divmod(n, 1000)
        if chunk:
            words = _chunk_to_words(chunk)
            parts.append(f"{words} {scale}" if scale else words)
        if not n:
            break
    return " ".join(reversed(parts))


def amount_to_words(amount: Decimal, sub_unit: str = "Paise") -> str:
    """Words for a currency amount with two decimal places.

    ``Decimal("1500")`` -> "One Thousand Five Hundred";
    ``Decimal("10.50")`` -> "Ten and Fifty Paise".
    """
    quantized = Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    whole = int(quantized)
    fraction = int((quantized - whole) * 100)
    words = number_to_words(whole)
    if fraction:
        words = f"{words} and {number_to_words(fraction)} {sub_unit}"
    return words
