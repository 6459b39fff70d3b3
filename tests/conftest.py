"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for imports in tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from fastapi.testclient import TestClient

from shared.storage.list_store import InMemoryListStore
from apps.api.main import app
from apps.api.routers.prompts_router import get_list_store
from apps.api.services.prompt_repository import PromptRepository


@pytest.fixture
def store() -> InMemoryListStore:
    return InMemoryListStore()


@pytest.fixture
def repository(store) -> PromptRepository:
    return PromptRepository(store, max_prompts=1000, max_retries=3)


@pytest.fixture
def client(store):
    """API client backed by the in-memory store instead of Redis"""
    app.dependency_overrides[get_list_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def free_payload():
    return {
        "name": "SEO Blog Writer",
        "description": "Writes long-form blog posts tuned for search",
        "prompt": "You are an expert SEO copywriter. Write a blog post about {topic}.",
        "ai": ["ChatGPT", "Claude"],
        "creator": "dina",
        "priceType": "free",
    }


@pytest.fixture
def paid_payload():
    return {
        "name": "Sales Email Closer",
        "description": "Cold outreach sequence generator",
        "encryptedPrompt": "U2FsdGVkX1+vupppZksvRf5pq5g5XjFRlipRkwB0K1Y=",
        "ai": ["ChatGPT"],
        "creator": "rudi",
        "priceType": "paid",
        "price": 25000,
        "sellerContact": "wa.me/628123456789",
    }
