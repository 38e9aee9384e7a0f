"""Pytest fixtures.

Each test gets a fresh InMemoryCampgroundStore injected into app.state, so the
lifespan never opens a MongoDB connection.
"""

import pytest
from httpx import ASGITransport, AsyncClient

from database import InMemoryCampgroundStore
from main import app
from schemas import CampgroundIn, ReviewIn

PINE_RIDGE = {"title": "Pine Ridge", "location": "CO", "price": 25}


@pytest.fixture
def store():
    """Fresh in-memory store per test."""
    return InMemoryCampgroundStore()


@pytest.fixture
async def client(store):
    """Client with store injected into app state; 5xx responses are returned, not raised."""
    app.state.store = store
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.store = None


@pytest.fixture
async def campground(store):
    return await store.create_campground(CampgroundIn(**PINE_RIDGE))


@pytest.fixture
async def reviewed_campground(store, campground):
    await store.create_review(campground.id, ReviewIn(rating=5, body="Great"))
    await store.create_review(campground.id, ReviewIn(rating=2, body="Too many mosquitoes"))
    return await store.get_campground(campground.id)
