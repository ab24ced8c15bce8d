# services/api/core/painting.py
"""
Detect orders whose cups need manual paint finishing (gradient, bicolor,
painted rim) before they can go to production.
"""
from typing import Optional

# Portuguese finish names as they appear in product names / descriptions
PAINTING_KEYWORDS = (
    "degradê",
    "degrade",
    "bicolor",
    "borda",
)


def needs_painting(description: Optional[str], fallback_product_name: str) -> bool:
    """
    True if the real description (or, when missing, the marketplace product
    name) mentions any painting finish. Plain case-insensitive substring match.
    """
    desc = (description or fallback_product_name or "").lower()
    return any(keyword in desc for keyword in PAINTING_KEYWORDS)
