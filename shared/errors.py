from typing import List


class MarketplaceError(Exception):
    """Base class for marketplace service errors"""


class ValidationError(MarketplaceError):
    """One or more field/content violations, reported together"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class NotFoundError(MarketplaceError):
    def __init__(self, prompt_id: str):
        self.prompt_id = prompt_id
        super().__init__(f"Prompt not found: {prompt_id}")


class StoreError(MarketplaceError):
    """Backing list service unreachable or returned malformed data"""


class ConcurrentUpdateError(StoreError):
    """Conditional replace lost against a concurrent writer"""


class CorruptRecordError(MarketplaceError):
    """A single stored item could not be parsed"""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Corrupt record: {reason}")
