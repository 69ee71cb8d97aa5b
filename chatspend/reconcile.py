"""
Turn raw model replies into structured values.

Every reply goes through an ordered list of strategies. Each strategy is a
pure function returning a candidate or None, and the first non-empty
candidate wins. Malformed model output is never an error here: expenses fall
back to heuristics over the user's own text, insights to a placeholder
sentence.
"""

import json
import logging
import re
import unicodedata
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

from chatspend.schemas import (
    CATEGORY_NAMES,
    CURRENCIES,
    DEFAULT_CURRENCY,
    ExtractedExpense,
    coerce_amount,
)

logger = logging.getLogger(__name__)

NO_INSIGHTS_MESSAGE = (
    "No spending patterns identified yet. Add more expenses to get insights."
)

# One level of nesting is enough for a flat expense object.
JSON_OBJECT_PATTERN = re.compile(r"\{(?:[^{}]|(?:\{[^{}]*\}))*\}")
JSON_ARRAY_PATTERN = re.compile(r"\[([\s\S]*?)\]")

LIST_MARKER_PATTERN = re.compile(r"^(\d+[.)]|\*|-|•)\s+")
MIN_PLAIN_LINE_LENGTH = 15
MAX_PLAIN_LINES = 3

MILLION_PATTERN = re.compile(
    r"(\d+)\s*(?:triệu|tr)(?![^\W\d_])(?:\s*(\d)(?!\d))?", re.IGNORECASE
)
THOUSAND_PATTERN = re.compile(r"\d\s*k(?![^\W\d_])|nghìn|ngàn", re.IGNORECASE)
INTEGER_PATTERN = re.compile(r"\d+")

CATEGORY_KEYWORDS = [
    (
        "Food",
        [
            "food",
            "eat",
            "ate",
            "lunch",
            "dinner",
            "breakfast",
            "meal",
            "restaurant",
            "snack",
            "ăn",
            "phở",
            "cơm",
            "bún",
            "bánh mì",
            "nhà hàng",
        ],
    ),
    (
        "Transport",
        [
            "transport",
            "uber",
            "grab",
            "taxi",
            "bus",
            "train",
            "petrol",
            "fuel",
            "parking",
            "xe",
            "xăng",
            "xe buýt",
            "gửi xe",
        ],
    ),
    (
        "Entertainment",
        [
            "entertainment",
            "movie",
            "movies",
            "cinema",
            "concert",
            "game",
            "games",
            "netflix",
            "karaoke",
            "phim",
            "giải trí",
        ],
    ),
    (
        "Shopping",
        [
            "shopping",
            "shop",
            "clothes",
            "shoes",
            "mall",
            "mua sắm",
            "quần áo",
            "giày",
        ],
    ),
]

_CATEGORY_PATTERNS = [
    (
        category,
        re.compile(
            r"\b(?:" + "|".join(re.escape(word) for word in words) + r")\b",
            re.IGNORECASE,
        ),
    )
    for category, words in CATEGORY_KEYWORDS
]


def utc_now_iso(now: Optional[datetime] = None) -> str:
    """ISO 8601 timestamp in UTC with millisecond precision and a Z suffix."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return now.isoformat(timespec="milliseconds") + "Z"


def first_success(strategies: Iterable[Callable[[], Any]]) -> Any:
    """Run strategies in order and return the first non-empty candidate."""
    for strategy in strategies:
        candidate = strategy()
        if candidate:
            return candidate
    return None


def _loads(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        return None


def parse_direct(reply: str) -> Any:
    """Parse the whole reply as JSON."""
    return _loads(reply)


def parse_extracted(reply: str, pattern: re.Pattern) -> Any:
    """Parse the first pattern match inside the reply as JSON."""
    match = pattern.search(reply or "")
    if match is None:
        return None
    return _loads(match.group(0))


# Expense extraction


def normalize_category(value: Any) -> str:
    if isinstance(value, str):
        wanted = value.strip().lower()
        for name in CATEGORY_NAMES:
            if name.lower() == wanted:
                return name
    return "Other"


def normalize_currency(value: Any) -> str:
    if not value:
        return DEFAULT_CURRENCY
    currency = str(value).strip().upper()
    if currency not in CURRENCIES:
        logger.warning(f"Unsupported currency {value!r}, using {DEFAULT_CURRENCY}")
        return DEFAULT_CURRENCY
    return currency


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def normalize_expense(candidate: Any, now: str) -> Optional[ExtractedExpense]:
    """
    Validate a parsed JSON candidate and fill in defaults.

    Returns None when the candidate is not an object or has no usable amount,
    which sends the ladder on to the next strategy.
    """
    if not isinstance(candidate, dict):
        return None

    amount = coerce_amount(candidate.get("amount"))
    if amount is None:
        logger.info(f"Discarding candidate without a usable amount: {candidate}")
        return None

    return ExtractedExpense(
        amount=amount,
        category=normalize_category(candidate.get("category")),
        date=str(candidate.get("date") or now),
        description=_optional_text(candidate.get("description")),
        location=_optional_text(candidate.get("location")),
        currency=normalize_currency(candidate.get("currency")),
    )


def _composed(text: str) -> str:
    # Keywords are stored precomposed (NFC); decomposed input would miss them.
    return unicodedata.normalize("NFC", text)


def parse_vietnamese_amount(text: str) -> float:
    """
    Best-effort amount from free text.

    "1 triệu 2" and "1tr2" read as 1,200,000; "30k", "30 nghìn" and "30 ngàn"
    read as 30,000; otherwise the first integer in the text. Only a single
    digit after the million marker is taken as hundred-thousands.
    """
    text = _composed(text)
    million = MILLION_PATTERN.search(text)
    if million:
        millions = int(million.group(1))
        hundred_thousands = int(million.group(2)) if million.group(2) else 0
        return float(millions * 1_000_000 + hundred_thousands * 100_000)

    number = INTEGER_PATTERN.search(text)
    if number is None:
        return 0.0
    amount = int(number.group(0))
    if THOUSAND_PATTERN.search(text):
        amount *= 1000
    return float(amount)


def guess_category(text: str) -> str:
    text = _composed(text)
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(text):
            return category
    return "Other"


def heuristic_expense(text: str, now: str) -> Optional[ExtractedExpense]:
    """Build an expense straight from the user's text, ignoring the model."""
    if not text or not text.strip():
        return None
    return ExtractedExpense(
        amount=parse_vietnamese_amount(text),
        category=guess_category(text),
        date=now,
        description=text,
        location="",
        currency=DEFAULT_CURRENCY,
    )


def reconcile_expense(
    reply: Optional[str], text: str, now: Optional[str] = None
) -> Optional[ExtractedExpense]:
    """
    Recover an expense from a model reply.

    Tries, in order: the whole reply as JSON, the first {...} block in the
    reply, then keyword and number heuristics over the original `text`.

    Args:
        reply: Raw text returned by the model (may be None or empty)
        text: The user's original message
        now: ISO timestamp used for missing dates (defaults to current time)

    Returns:
        The recovered expense, or None when the user's text is blank and the
        reply held nothing usable
    """
    now = now or utc_now_iso()
    reply = reply or ""

    strategies = [
        ("direct", lambda: normalize_expense(parse_direct(reply), now)),
        (
            "extracted",
            lambda: normalize_expense(parse_extracted(reply, JSON_OBJECT_PATTERN), now),
        ),
        ("heuristic", lambda: heuristic_expense(text, now)),
    ]
    for name, strategy in strategies:
        expense = strategy()
        if expense is not None:
            logger.info(f"Expense recovered by {name} strategy: {expense.model_dump()}")
            return expense

    logger.error("Failed to recover an expense from the reply or the input text")
    return None


# Insights


def _as_text(item: Any) -> str:
    if isinstance(item, str):
        return item
    return json.dumps(item, ensure_ascii=False)


def insights_from_json(parsed: Any) -> Optional[list[str]]:
    if isinstance(parsed, list) and parsed:
        return [_as_text(item) for item in parsed]
    return None


def insights_from_list_markers(reply: str) -> Optional[list[str]]:
    """Numbered ("1." / "1)") or bulleted ("*", "-", "•") lines, markers removed."""
    lines = [line.strip() for line in re.split(r"\n+", reply)]
    insights = [
        LIST_MARKER_PATTERN.sub("", line, count=1).strip()
        for line in lines
        if LIST_MARKER_PATTERN.match(line)
    ]
    return insights or None


def insights_from_plain_lines(reply: str) -> Optional[list[str]]:
    lines = [line.strip() for line in re.split(r"\n+", reply)]
    insights = [
        line
        for line in lines
        if len(line) > MIN_PLAIN_LINE_LENGTH and not line.startswith("```")
    ]
    return insights[:MAX_PLAIN_LINES] or None


def reconcile_insights(reply: Optional[str]) -> list[str]:
    """
    Recover a list of insight sentences from a model reply.

    Never returns an empty list: when nothing can be recovered the result is
    a single placeholder sentence.
    """
    reply = reply or ""
    insights = first_success(
        [
            lambda: insights_from_json(parse_direct(reply)),
            lambda: insights_from_json(parse_extracted(reply, JSON_ARRAY_PATTERN)),
            lambda: insights_from_list_markers(reply),
            lambda: insights_from_plain_lines(reply),
        ]
    )
    if insights:
        return insights

    logger.info("Could not extract valid insights from response")
    return [NO_INSIGHTS_MESSAGE]
