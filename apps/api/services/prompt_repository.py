import logging
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from shared.errors import ConcurrentUpdateError, CorruptRecordError, NotFoundError
from shared.models.prompt import Prompt
from shared.storage.list_store import ListStore
from . import record_codec

logger = logging.getLogger(__name__)

DEFAULT_MAX_PROMPTS = 1000
DEFAULT_MAX_RETRIES = 3


def parse_record(raw: str) -> Prompt:
    try:
        return Prompt.from_json(raw)
    except (PydanticValidationError, ValueError, TypeError) as e:
        raise CorruptRecordError(raw, str(e)) from e


class PromptRepository:
    """
    Prompt records kept in one ordered list, newest insert at the front.

    The list has no per-element update, so adding a comment reads the whole
    list, swaps the changed record in memory and replaces the list wholesale.
    The replace is conditional on the list being unchanged since the read; a
    conflicting writer causes the whole read-modify-write to be retried.
    """

    def __init__(self, store: ListStore, max_prompts: int = DEFAULT_MAX_PROMPTS,
                 max_retries: int = DEFAULT_MAX_RETRIES):
        self.store = store
        self.max_prompts = max_prompts
        self.max_retries = max_retries

    async def list_all(self) -> List[Prompt]:
        prompts = []
        for raw in await self.store.read_all():
            try:
                prompts.append(parse_record(raw))
            except CorruptRecordError as e:
                logger.warning(f"Skipping corrupt prompt record: {e.reason}")
        prompts.sort(key=lambda prompt: prompt.timestamp, reverse=True)
        return prompts

    async def get(self, prompt_id: str) -> Prompt:
        for prompt in await self.list_all():
            if prompt.id == prompt_id:
                return prompt
        raise NotFoundError(prompt_id)

    async def create(self, raw: Dict[str, Any]) -> Prompt:
        prompt = record_codec.build_prompt(raw)
        await self.store.push_front(prompt.to_json())
        await self.store.trim(0, self.max_prompts - 1)
        logger.info(f"Created prompt {prompt.id} ({prompt.price_type.value})")
        return prompt

    async def add_comment(self, prompt_id: str, raw: Dict[str, Any]) -> Prompt:
        comment = record_codec.build_comment(raw)

        for attempt in range(1, self.max_retries + 1):
            items = await self.store.read_all()
            index, prompt = self._locate(items, prompt_id)
            if prompt is None:
                raise NotFoundError(prompt_id)

            prompt.comments.insert(0, comment)
            record_codec.recompute_rating(prompt)

            updated = list(items)
            updated[index] = prompt.to_json()
            try:
                await self.store.replace_all(updated, expected=items, limit=self.max_prompts)
            except ConcurrentUpdateError:
                logger.warning(
                    f"Concurrent update on prompt list while commenting {prompt_id} "
                    f"(attempt {attempt}/{self.max_retries})"
                )
                continue

            logger.info(f"Added comment to prompt {prompt_id}, rating now {prompt.rating} ({prompt.rating_count})")
            return prompt

        raise ConcurrentUpdateError(f"Prompt {prompt_id} kept changing, comment not saved")

    @staticmethod
    def _locate(items: List[str], prompt_id: str) -> Tuple[int, Optional[Prompt]]:
        # Corrupt items keep their position and are carried over by the replace
        for index, raw in enumerate(items):
            try:
                prompt = parse_record(raw)
            except CorruptRecordError:
                continue
            if prompt.id == prompt_id:
                return index, prompt
        return -1, None
