from __future__ import annotations

import json
import os
import sys
import uuid
from pathlib import Path
from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

REPO_ROOT = Path(__file__).resolve().parents[1]

# Must be in place before paper_assistant.api is imported anywhere.
os.environ.setdefault("CONFIG_PATH", str(REPO_ROOT / "config" / "paper_assistant.yaml"))
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from paper_assistant.api import create_app  # noqa: E402
from paper_assistant.config import load_config  # noqa: E402


LONG_ABSTRACT = (
    "The dominant sequence transduction models are based on complex recurrent or "
    "convolutional neural networks that include an encoder and a decoder. The best "
    "performing models also connect the encoder and decoder through an attention "
    "mechanism. We propose a new simple network architecture, the Transformer."
)


def atom_entry(arxiv_id: str, title: str, authors: List[str], abstract: str,
               published: str = "2017-06-12T17:57:34Z") -> str:
    author_xml = "".join(f"<author><name>{name}</name></author>" for name in authors)
    return (
        "<entry>"
        f"<id>http://arxiv.org/abs/{arxiv_id}</id>"
        f"<published>{published}</published>"
        f"<title>{title}</title>"
        f"<summary>{abstract}</summary>"
        f"{author_xml}"
        "</entry>"
    )


def atom_feed(*entries: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        '<feed xmlns="http://www.w3.org/2005/Atom">'
        "<title>ArXiv Query</title>"
        + "".join(entries)
        + "</feed>"
    )


DEFAULT_FEED = atom_feed(
    atom_entry("1706.03762v7", "Attention Is All You Need",
               ["Ashish Vaswani", "Noam Shazeer"], LONG_ABSTRACT),
    atom_entry("1810.04805v2", "BERT: Pre-training of Deep Bidirectional\n  Transformers",
               ["Jacob Devlin"], "We introduce a new language representation model called BERT.",
               published="2018-10-11T00:50:01Z"),
    atom_entry("2005.14165v4", "Language Models are Few-Shot Learners",
               ["Tom B. Brown"], "", published="2020-05-28T17:29:03Z"),
)


class FakeUpstream:
    """Stands in for arXiv and the chat-completion provider."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.arxiv_feed: str = DEFAULT_FEED
        self.arxiv_status: int = 200
        self.llm_status: int = 200
        self.llm_reply: Callable[[list], str] = self._default_reply
        self.arxiv_error: Optional[Exception] = None

    @staticmethod
    def _default_reply(messages: list) -> str:
        if messages[0]["role"] == "system":
            return f"Assistant reply to: {messages[-1]['content']}"
        return "A concise model-written summary."

    @property
    def arxiv_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "export.arxiv.org"]

    @property
    def llm_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == "openrouter.ai"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == "export.arxiv.org":
            if self.arxiv_error is not None:
                raise self.arxiv_error
            return httpx.Response(self.arxiv_status, text=self.arxiv_feed)

        if request.url.host == "openrouter.ai":
            if self.llm_status != 200:
                return httpx.Response(self.llm_status, json={"error": {"message": "upstream failure"}})
            body = json.loads(request.content)
            content = self.llm_reply(body["messages"])
            return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})

        return httpx.Response(404)


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def app_config(tmp_path):
    config = load_config()
    config.database.url = f"sqlite:///{tmp_path / 'test.db'}"
    config.auth.secret_key = "test-secret-key"
    config.auth.bcrypt_rounds = 4
    return config


@pytest.fixture
def app(app_config, upstream):
    return create_app(app_config, http_transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def register(client: TestClient, email: Optional[str] = None, password: str = "StrongPass123") -> dict:
    email = email or f"user_{uuid.uuid4().hex}@example.com"
    response = client.post("/api/auth/register", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    payload = response.json()
    payload["email"] = email
    payload["password"] = password
    return payload


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(client) -> dict:
    return register(client)


@pytest.fixture
def keyed_user(client, user) -> dict:
    response = client.put(
        "/api/user/api-key",
        headers=auth_headers(user["token"]),
        json={"externalApiKey": "sk-or-test"},
    )
    assert response.status_code == 200
    return user
