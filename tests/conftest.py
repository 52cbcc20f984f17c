"""
Shared fixtures: an in-process fake of the wisdom Quote Service.

The fake is a FastAPI app served through ``httpx.ASGITransport``, so the real
client code runs end to end without a network.
"""

import asyncio
import random
from collections import Counter

import httpx
import pytest
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from hamster_wisdom.client import QuoteServiceClient
from hamster_wisdom.controller import SessionController

BASE_URL = "http://wisdom.test"


class SubmitPayload(BaseModel):
    wisdom: str
    author: str


class FakeQuoteService:
    """Knobs and call counters for the fake service."""

    def __init__(self) -> None:
        self.quotes: list[dict] = [
            {"id": 1, "wisdom": "Never trust a wheel you did not build.", "author": "Gerald"},
            {"id": 2, "wisdom": "Cheeks full, heart fuller.", "author": "Gerald"},
        ]
        self.random_responses: list[dict] = []
        self.random_gates: list[asyncio.Event] = []
        self.failing: set[str] = set()
        self.malformed: set[str] = set()
        self.submissions: list[dict] = []
        self.calls: Counter[str] = Counter()

    def seed(self, count: int) -> None:
        self.quotes = [
            {"id": i, "wisdom": f"Wisdom number {i}", "author": "Gerald"}
            for i in range(1, count + 1)
        ]

    async def wait_for_calls(self, endpoint: str, expected: int) -> None:
        """Yield to the loop until ``endpoint`` has been hit ``expected`` times."""
        for _ in range(2000):
            if self.calls[endpoint] >= expected:
                return
            await asyncio.sleep(0.001)
        raise AssertionError(f"{endpoint} called {self.calls[endpoint]} times, wanted {expected}")

    def _check(self, endpoint: str) -> None:
        self.calls[endpoint] += 1
        if endpoint in self.failing:
            raise HTTPException(status_code=503, detail="Gerald is unavailable")


def create_fake_app(fake: FakeQuoteService) -> FastAPI:
    app = FastAPI(title="Fake Wisdom Service")

    @app.get("/wisdom/random", response_model=None)
    async def random_wisdom() -> dict | PlainTextResponse:
        fake.calls["random"] += 1
        payload = fake.random_responses.pop(0) if fake.random_responses else fake.quotes[0]
        gate = fake.random_gates.pop(0) if fake.random_gates else None
        if gate is not None:
            await gate.wait()
        if "random" in fake.failing:
            raise HTTPException(status_code=503, detail="Gerald is unavailable")
        if "random" in fake.malformed:
            return PlainTextResponse("the hamster ate the JSON")
        return payload

    @app.get("/wisdom/count")
    async def count() -> dict:
        fake._check("count")
        return {"count": len(fake.quotes)}

    @app.get("/wisdom/all")
    async def all_wisdom() -> list[dict]:
        fake._check("all")
        return fake.quotes

    @app.post("/wisdom/submit")
    async def submit(payload: SubmitPayload) -> dict:
        fake._check("submit")
        entry = {"id": len(fake.quotes) + 1, **payload.model_dump()}
        fake.submissions.append(payload.model_dump())
        fake.quotes.append(entry)
        return {"status": "ok"}

    return app


@pytest.fixture
def fake_service() -> FakeQuoteService:
    return FakeQuoteService()


@pytest.fixture
async def service_client(fake_service):
    http = httpx.AsyncClient(transport=httpx.ASGITransport(app=create_fake_app(fake_service)))
    yield QuoteServiceClient(BASE_URL, http_client=http)
    await http.aclose()


@pytest.fixture
async def controller(service_client):
    controller = SessionController(service_client, commit_delay=0.01, rng=random.Random(7))
    yield controller
    await controller.aclose()


@pytest.fixture
def fake_app(fake_service) -> FastAPI:
    return create_fake_app(fake_service)
