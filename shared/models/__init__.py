from .prompt import Prompt, Comment, PriceType, ENCRYPTED_PLACEHOLDER

__all__ = [
    "Prompt",
    "Comment",
    "PriceType",
    "ENCRYPTED_PLACEHOLDER"
]
