"""
Construction rules for Prompt and Comment records.

Every check of a submission runs and its message is collected in a
ValidationResult; build_prompt/build_comment only raise once, with all of them.
"""
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from shared.errors import ValidationError
from shared.models.prompt import ENCRYPTED_PLACEHOLDER, Comment, PriceType, Prompt
from . import text_guard

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 100
BODY_MIN_LENGTH = 10
BODY_MAX_LENGTH = 100000
DESCRIPTION_MAX_LENGTH = 2000
CREATOR_MAX_LENGTH = 100
SELLER_CONTACT_MAX_LENGTH = 200
MAX_TARGETS = 10
MIN_PAID_PRICE = 1000
MAX_PAID_PRICE = 1000000
COMMENT_MAX_LENGTH = 1000
MIN_COMMENT_RATING = 1
MAX_COMMENT_RATING = 5
DEFAULT_CREATOR = "Anonymous"
TRIM_CHARS = " \t\r\n"


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def add(self, message: str):
        self.errors.append(message)

    def extend(self, messages: List[str]):
        self.errors.extend(messages)

    def raise_for_errors(self):
        if self.errors:
            raise ValidationError(self.errors)


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_prompt_id(timestamp: Optional[int] = None) -> str:
    """Time-based id with a random suffix so concurrent creates do not collide"""
    return f"prompt-{timestamp or now_ms()}-{uuid.uuid4().hex[:9]}"


def _text(raw: Dict[str, Any], key: str) -> str:
    # Only ordinary whitespace is trimmed; other control characters stay for text_guard.validate
    value = raw.get(key)
    return value.strip(TRIM_CHARS) if isinstance(value, str) else ""


def normalize_targets(value: Any) -> List[str]:
    """Drop falsy entries, deduplicate keeping first occurrence, cap at MAX_TARGETS"""
    if not isinstance(value, (list, tuple)):
        return []
    targets = []
    for item in value:
        if not item:
            continue
        target = str(item).strip()
        if target and target not in targets:
            targets.append(target)
    return targets[:MAX_TARGETS]


def parse_price(value: Any) -> Optional[int]:
    """
    None when no price was given; ValueError when one was given but is not a
    whole number (plain ASCII digits for strings).
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError("boolean price")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        digits = value.strip()
        if digits.isascii() and digits.isdigit():
            return int(digits)
    raise ValueError(f"not a whole number: {value!r}")


def parse_rating(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def check_submission(raw: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()

    name = _text(raw, "name")
    if len(name) < NAME_MIN_LENGTH:
        result.add(f"Name must be at least {NAME_MIN_LENGTH} characters")
    elif len(name) > NAME_MAX_LENGTH:
        result.add(f"Name must be at most {NAME_MAX_LENGTH} characters")
    result.extend(text_guard.validate(name, "Name"))

    price_type = raw.get("priceType") or PriceType.FREE.value
    if price_type not in (PriceType.FREE.value, PriceType.PAID.value):
        result.add("Price type must be 'free' or 'paid'")
    paid = price_type == PriceType.PAID.value

    if paid:
        body = _text(raw, "encryptedPrompt")
        if not body:
            result.add("Encrypted prompt content is required for paid prompts")
    else:
        body = _text(raw, "prompt")
    if body or not paid:
        if len(body) < BODY_MIN_LENGTH:
            result.add(f"Prompt must be at least {BODY_MIN_LENGTH} characters")
        elif len(body) > BODY_MAX_LENGTH:
            result.add(f"Prompt must be at most {BODY_MAX_LENGTH} characters")
    if not paid:
        result.extend(text_guard.validate(body, "Prompt"))

    description = _text(raw, "description")
    if len(description) > DESCRIPTION_MAX_LENGTH:
        result.add(f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters")
    result.extend(text_guard.validate(description, "Description"))

    if not normalize_targets(raw.get("ai")):
        result.add("Select at least one supported AI")

    if paid:
        try:
            price = parse_price(raw.get("price"))
        except ValueError:
            result.add("Price must be a whole number")
        else:
            if price is None:
                result.add("Price is required for paid prompts")
            elif not MIN_PAID_PRICE <= price <= MAX_PAID_PRICE:
                result.add(f"Price must be between {MIN_PAID_PRICE} and {MAX_PAID_PRICE}")
        if not text_guard.sanitize(_text(raw, "sellerContact")):
            result.add("Seller contact is required for paid prompts")

    if len(_text(raw, "sellerContact")) > SELLER_CONTACT_MAX_LENGTH:
        result.add(f"Seller contact must be at most {SELLER_CONTACT_MAX_LENGTH} characters")
    if len(_text(raw, "creator")) > CREATOR_MAX_LENGTH:
        result.add(f"Creator must be at most {CREATOR_MAX_LENGTH} characters")

    return result


def build_prompt(raw: Dict[str, Any]) -> Prompt:
    if not isinstance(raw, dict):
        raise ValidationError(["Request body must be a JSON object"])

    check_submission(raw).raise_for_errors()

    paid = raw.get("priceType") == PriceType.PAID.value
    is_anonymous = bool(raw.get("isAnonymous"))
    creator = text_guard.sanitize(_text(raw, "creator"))
    timestamp = now_ms()

    if paid:
        # Ciphertext is opaque: no sanitization, no plaintext stored
        content = ENCRYPTED_PLACEHOLDER
        encrypted_content = _text(raw, "encryptedPrompt")
        price = parse_price(raw.get("price"))
    else:
        content = text_guard.sanitize(_text(raw, "prompt"))
        encrypted_content = None
        price = 0

    return Prompt(
        id=generate_prompt_id(timestamp),
        name=text_guard.sanitize(_text(raw, "name")),
        description=text_guard.sanitize(_text(raw, "description")),
        creator=DEFAULT_CREATOR if is_anonymous or not creator else creator,
        is_anonymous=is_anonymous,
        seller_contact=text_guard.sanitize(_text(raw, "sellerContact")),
        supported_targets=normalize_targets(raw.get("ai")),
        content=content,
        encrypted_content=encrypted_content,
        price_type=PriceType.PAID if paid else PriceType.FREE,
        price=price,
        timestamp=timestamp,
    )


def check_comment(raw: Dict[str, Any]) -> ValidationResult:
    result = ValidationResult()

    text = _text(raw, "text")
    if not text:
        result.add("Comment text is required")
    elif len(text) > COMMENT_MAX_LENGTH:
        result.add(f"Comment must be at most {COMMENT_MAX_LENGTH} characters")
    result.extend(text_guard.validate(text, "Comment"))

    rating = parse_rating(raw.get("rating"))
    if rating is None:
        result.add("Rating must be a number")
    elif not MIN_COMMENT_RATING <= rating <= MAX_COMMENT_RATING:
        result.add(f"Rating must be between {MIN_COMMENT_RATING} and {MAX_COMMENT_RATING}")

    if len(_text(raw, "author")) > CREATOR_MAX_LENGTH:
        result.add(f"Author must be at most {CREATOR_MAX_LENGTH} characters")

    return result


def build_comment(raw: Dict[str, Any]) -> Comment:
    if not isinstance(raw, dict):
        raise ValidationError(["Request body must be a JSON object"])

    check_comment(raw).raise_for_errors()

    author = text_guard.sanitize(_text(raw, "author"))
    return Comment(
        text=text_guard.sanitize(_text(raw, "text")),
        rating=parse_rating(raw.get("rating")),
        author=author or DEFAULT_CREATOR,
        timestamp=now_ms(),
    )


def recompute_rating(prompt: Prompt) -> Prompt:
    """rating = mean of comment ratings to one decimal, ratingCount = number of comments"""
    ratings = [comment.rating for comment in prompt.comments]
    prompt.rating_count = len(ratings)
    prompt.rating = round(sum(ratings) / len(ratings), 1) if ratings else 0
    return prompt
