"""Shared fakes and fixtures for the test suite."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from smart_apply.core.errors import TransportError
from smart_apply.core.model.job_listing import JobListing, JobSearchQuery
from smart_apply.core.orchestrator import ConversationOrchestrator
from smart_apply.core.providers.telegram_transport import ChatTransport
from smart_apply.core.services.job_search_fanout import JobSearchFanout
from smart_apply.core.services.state_store import ConversationStateStore
from smart_apply.core.services.user_store import UserStore

TITLES = [
    "Backend Engineer",
    "Python Developer",
    "Platform Engineer",
    "Data Engineer",
    "Site Reliability Engineer",
]


class FakeTransport(ChatTransport):
    """Records outbound traffic instead of talking to Telegram."""

    def __init__(self, file_bytes: bytes = b"%PDF-fake"):
        self.messages: List[Dict[str, Any]] = []
        self.actions: List[str] = []
        self.commands = None
        self.file_bytes = file_bytes
        self.fail_get_file = False
        self.fail_send = False
        self.closed = False

    async def send_message(
        self,
        chat_id,
        text,
        *,
        parse_mode=None,
        reply_keyboard=None,
        remove_keyboard=False,
        disable_link_preview=False,
    ):
        if self.fail_send:
            raise TransportError("sendMessage", "chat not found", 400)
        self.messages.append(
            {
                "chat_id": chat_id,
                "text": text,
                "parse_mode": parse_mode,
                "reply_keyboard": list(reply_keyboard) if reply_keyboard else None,
                "remove_keyboard": remove_keyboard,
                "disable_link_preview": disable_link_preview,
            }
        )

    async def send_chat_action(self, chat_id, action="typing"):
        self.actions.append(action)

    async def get_file(self, file_id):
        if self.fail_get_file:
            raise TransportError("getFile", "file is too big", 400)
        return f"documents/{file_id}"

    async def download_file(self, file_path, destination):
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.file_bytes)
        return destination

    async def set_commands(self, commands):
        self.commands = list(commands)

    async def set_description(self, description):
        self.description = description

    async def set_webhook(self, url, secret_token=""):
        self.webhook = (url, secret_token)

    async def delete_webhook(self):
        self.webhook = None

    async def aclose(self):
        self.closed = True

    @property
    def texts(self) -> List[str]:
        return [m["text"] for m in self.messages]


class FakeExtractor:
    def __init__(self, text: str = "Senior Python developer, 8 years of backend work"):
        self.text = text
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    def parse(self, buffer: bytes, mime_type: str) -> str:
        self.calls.append(mime_type)
        if self.error is not None:
            raise self.error
        return self.text


class FakeSuggester:
    def __init__(self, titles: Optional[List[str]] = None):
        self.titles = list(titles or TITLES)
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    async def suggest(self, resume_text: str) -> List[str]:
        self.calls.append(resume_text)
        if self.error is not None:
            raise self.error
        return list(self.titles)


class FakeSearchClient:
    """Returns canned listings per query; titles in `failing` raise."""

    def __init__(self):
        self.queries: List[JobSearchQuery] = []
        self.results: Dict[str, List[JobListing]] = {}
        self.failing: set = set()
        self.closed = False

    async def search(self, query: JobSearchQuery) -> List[JobListing]:
        self.queries.append(query)
        if query.query in self.failing:
            raise RuntimeError("search backend down")
        return list(self.results.get(query.query, []))

    async def aclose(self):
        self.closed = True


def make_listing(title: str, company: str = "Acme", link: str = "https://jobs.example.com/1"):
    return JobListing(job_title=title, employer_name=company, job_apply_link=link)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def extractor():
    return FakeExtractor()


@pytest.fixture
def suggester():
    return FakeSuggester()


@pytest.fixture
def search_client():
    return FakeSearchClient()


@pytest.fixture
def fanout(search_client, transport):
    return JobSearchFanout(search_client=search_client, transport=transport)


@pytest.fixture
def orchestrator(transport, extractor, suggester, fanout, tmp_path):
    return ConversationOrchestrator(
        transport=transport,
        user_store=UserStore(),
        state_store=ConversationStateStore(),
        extractor=extractor,
        suggester=suggester,
        fanout=fanout,
        download_dir=str(tmp_path / "downloads"),
    )
