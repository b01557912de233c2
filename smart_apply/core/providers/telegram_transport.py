"""Chat transport interface and its Telegram Bot API adapter."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx
from loguru import logger

from smart_apply.core.errors import DownloadFailure, TransportError
from smart_apply.core.model.chat_event import ChatEvent, Command, DocumentUpload, Text

MARKDOWN_V2 = "MarkdownV2"


class ChatTransport(ABC):
    """The operations the orchestrator needs from a chat platform."""

    @abstractmethod
    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: Optional[str] = None,
        reply_keyboard: Optional[Sequence[str]] = None,
        remove_keyboard: bool = False,
        disable_link_preview: bool = False,
    ) -> None:
        """Send a message, optionally with a one-time reply keyboard."""

    @abstractmethod
    async def send_chat_action(self, chat_id: int, action: str = "typing") -> None:
        """Show a transient activity indicator."""

    @abstractmethod
    async def get_file(self, file_id: str) -> str:
        """Resolve an uploaded file id to a download path."""

    @abstractmethod
    async def download_file(self, file_path: str, destination: Path) -> Path:
        """Download the file at file_path into destination."""

    @abstractmethod
    async def set_commands(self, commands: Sequence[Tuple[str, str]]) -> None:
        """Publish the (command, description) menu."""


def parse_update(update: Dict[str, Any]) -> Optional[Tuple[int, ChatEvent]]:
    """Translate a Telegram update into (chat id, chat event).

    Returns None for updates the bot does not handle (edits, stickers, ...).
    Text starting with "/" becomes a Command, never a Text event.
    """
    message = update.get("message")
    if not isinstance(message, dict):
        return None

    chat_id = (message.get("chat") or {}).get("id")
    if not isinstance(chat_id, int):
        return None
    first_name = (message.get("from") or {}).get("first_name")

    document = message.get("document")
    if isinstance(document, dict):
        if not document.get("file_id"):
            return None
        return chat_id, DocumentUpload(
            file_id=document["file_id"],
            mime_type=document.get("mime_type") or "",
            file_name=document.get("file_name") or "",
            file_size=document.get("file_size"),
            first_name=first_name,
        )

    text = message.get("text")
    if not isinstance(text, str):
        return None
    if text.startswith("/"):
        name = text[1:].split(maxsplit=1)[0] if text[1:].strip() else ""
        name = name.split("@", 1)[0].lower()
        return chat_id, Command(name=name, first_name=first_name)
    return chat_id, Text(body=text, first_name=first_name)


class TelegramTransport(ChatTransport):
    """Telegram Bot HTTP API over httpx."""

    def __init__(
        self,
        token: str,
        api_base_url: str = "https://api.telegram.org",
        request_timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not token:
            raise ValueError("TELEGRAM_BOT_TOKEN is required")
        base = api_base_url.rstrip("/")
        self._api_url = f"{base}/bot{token}"
        self._file_url = f"{base}/file/bot{token}"
        self._client = client or httpx.AsyncClient(timeout=request_timeout)

    async def _call(
        self, method: str, payload: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None
    ) -> Any:
        """Call a Bot API method and return its ``result``.

        Raises:
            TransportError: On HTTP failure or an ``ok: false`` answer.
        """
        kwargs: Dict[str, Any] = {"json": payload or {}}
        if timeout is not None:
            kwargs["timeout"] = timeout
        try:
            response = await self._client.post(f"{self._api_url}/{method}", **kwargs)
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise TransportError(method, str(e)) from e

        if not body.get("ok"):
            logger.warning(
                "Telegram API call rejected",
                method=method,
                description=body.get("description"),
            )
            raise TransportError(
                method,
                body.get("description", "unknown error"),
                body.get("error_code", response.status_code),
            )
        return body.get("result")

    async def send_message(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: Optional[str] = None,
        reply_keyboard: Optional[Sequence[str]] = None,
        remove_keyboard: bool = False,
        disable_link_preview: bool = False,
    ) -> None:
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if disable_link_preview:
            payload["link_preview_options"] = {"is_disabled": True}
        if reply_keyboard:
            payload["reply_markup"] = {
                "keyboard": [[{"text": label}] for label in reply_keyboard],
                "resize_keyboard": True,
                "one_time_keyboard": True,
            }
        elif remove_keyboard:
            payload["reply_markup"] = {"remove_keyboard": True}
        await self._call("sendMessage", payload)

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> None:
        await self._call("sendChatAction", {"chat_id": chat_id, "action": action})

    async def get_file(self, file_id: str) -> str:
        result = await self._call("getFile", {"file_id": file_id})
        file_path = (result or {}).get("file_path")
        if not file_path:
            raise DownloadFailure(f"No download path for file {file_id}")
        return file_path

    async def download_file(self, file_path: str, destination: Path) -> Path:
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._client.stream("GET", f"{self._file_url}/{file_path}") as response:
                response.raise_for_status()
                with open(destination, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except (httpx.HTTPError, OSError) as e:
            # file_path only; the URL embeds the bot token
            raise DownloadFailure(f"Failed to download file {file_path}: {e}") from e
        return destination

    async def set_commands(self, commands: Sequence[Tuple[str, str]]) -> None:
        await self._call(
            "setMyCommands",
            {"commands": [{"command": c, "description": d} for c, d in commands]},
        )

    async def set_description(self, description: str) -> None:
        await self._call("setMyDescription", {"description": description})

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 10) -> List[Dict[str, Any]]:
        """Long-poll for new updates starting at offset."""
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        # Leave headroom over the server-side long-poll timeout
        return await self._call("getUpdates", payload, timeout=timeout + 10) or []

    async def set_webhook(self, url: str, secret_token: str = "") -> None:
        payload: Dict[str, Any] = {"url": url, "allowed_updates": ["message"]}
        if secret_token:
            payload["secret_token"] = secret_token
        await self._call("setWebhook", payload)

    async def delete_webhook(self) -> None:
        await self._call("deleteWebhook", {"drop_pending_updates": False})

    async def aclose(self) -> None:
        await self._client.aclose()
