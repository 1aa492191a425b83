import re
from decimal import Decimal, InvalidOperation
from typing import Optional


class NumberValidator:
    """Parses numeric fields typed by the user. Raises ValueError with a readable message."""

    @staticmethod
    def parse_int(raw: Optional[str], *, minimum: Optional[int] = None) -> int:
        text = (raw or "").strip()
        if not re.fullmatch(r"[+-]?\d+", text):
            raise ValueError("Invalid input. Please enter a whole number.")
        value = int(text)
        if minimum is not None and value < minimum:
            raise ValueError(f"Value must be at least {minimum}.")
        return value

    @staticmethod
    def parse_price(raw: Optional[str]) -> Decimal:
        # Accept both 19.99 and 19,99
        text = (raw or "").strip().replace(",", ".")
        try:
            value = Decimal(text)
        except InvalidOperation:
            raise ValueError("Invalid input. Please enter a decimal number (e.g. 19.99 or 19,99).") from None
        if not value.is_finite() or value < 0:
            raise ValueError("Price must be a non-negative number.")
        return value


class TextValidator:
    """Basic text checks for titles and names."""

    @staticmethod
    def require_text(text: Optional[str], field_name: str = "Value") -> str:
        if text is None or not text.strip():
            raise ValueError(f"{field_name} cannot be empty.")
        return text.strip()
