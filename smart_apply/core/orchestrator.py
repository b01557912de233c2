"""Conversation orchestrator: drives each user through the guided flow.

The orchestrator owns one finite-state machine per user (see
``state_machine``), interprets inbound chat events, calls the document
extractor, the title suggester and the job-search fan-out, and reports
everything back through the chat transport. Every external call is wrapped
so that a failure produces exactly one error message and a reset to a safe
state.
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Optional, Sequence, Tuple

from loguru import logger

from smart_apply.core import state_machine
from smart_apply.core.errors import ValidationError
from smart_apply.core.model.chat_event import ChatEvent, Command, DocumentUpload, Text
from smart_apply.core.model.conversation_state import ConversationState
from smart_apply.core.providers.telegram_transport import ChatTransport
from smart_apply.core.providers.title_suggester import TitleSuggester
from smart_apply.core.services.job_search_fanout import JobSearchFanout
from smart_apply.core.services.state_store import ConversationStateStore
from smart_apply.core.services.user_store import UserStore
from smart_apply.core.tools.document_extractor import (
    DocumentExtractor,
    is_word_type,
    resolve_mime_type,
)
from smart_apply.core.tools.markdown import format_numbered_list

SEARCH_JOBS_LABEL = "🔍 Search Jobs"
ANALYZE_AGAIN_LABEL = "🔄 Analyze Again"

BOT_COMMANDS: Sequence[Tuple[str, str]] = (
    ("start", "Start a new session"),
    ("upload_new_cv", "Upload a new CV"),
    ("suggest_new_job_titles", "Get AI-powered job title suggestions"),
    ("search_for_jobs", "Discover job listings based on your profile"),
    ("update_location", "Update your preferred job location"),
    ("help", "Show help information"),
)

COMMANDS_HELP = "\n".join(f"/{name} - {description}" for name, description in BOT_COMMANDS)

ASK_FOR_CV = "📄 Please upload your CV (PDF or DOCX):"
ASK_FOR_NAME = "📝 Please enter your full name:"
START_FIRST = "Please start with /start first"
UPLOAD_FIRST = "Please upload a CV first using /upload_new_cv"
SUGGEST_FIRST = "Please get job title suggestions first using /suggest_new_job_titles"
UNRECOGNIZED = (
    "I'm not sure what you mean. Please use the commands or buttons to interact with me."
)
INVALID_FILE_TYPE = "❌ Please upload a PDF or DOCX file."
FILE_TOO_LARGE = "❌ This file is too large. Please upload a file under {limit} MB."
WORD_COMING_SOON = "❌ DOCX support is coming soon. Please upload a PDF file for now."
CV_PROCESSING_ERROR = "❌ Error processing your CV. Please try again."
CV_ANALYSIS_ERROR = "❌ Error analyzing your CV. Please try again."
TITLES_ERROR = "❌ Error generating new job titles. Please try again."
SEARCH_ERROR = "❌ An error occurred while searching for jobs. Please try again later."
CONFIRMATION_HINT = (
    f"Please choose \"{SEARCH_JOBS_LABEL}\" to look for jobs "
    f"or \"{ANALYZE_AGAIN_LABEL}\" to upload your CV again."
)


def welcome_message(first_name: Optional[str]) -> str:
    return (
        f"👋 Hello {first_name or 'there'}, and welcome to Smart Apply Bot!\n\n"
        "This bot is designed to help you find the most relevant job opportunities "
        "based on your CV.\n"
        "Here's what you can do:\n\n"
        f"{COMMANDS_HELP}\n\n"
        "📄 To get started, please upload your CV (PDF or DOCX)."
    )


class ConversationOrchestrator:
    """Interprets chat events per user and drives the résumé-to-jobs flow."""

    def __init__(
        self,
        transport: ChatTransport,
        user_store: UserStore,
        state_store: ConversationStateStore,
        extractor: DocumentExtractor,
        suggester: TitleSuggester,
        fanout: JobSearchFanout,
        download_dir: Optional[str] = None,
        keep_downloads: bool = False,
        word_uploads_enabled: bool = False,
        max_file_size: int = 20 * 1024 * 1024,
    ):
        self.transport = transport
        self.users = user_store
        self.states = state_store
        self.extractor = extractor
        self.suggester = suggester
        self.fanout = fanout
        self._download_dir = Path(download_dir) if download_dir else None
        self._temp_dir: Optional[tempfile.TemporaryDirectory] = None
        self._keep_downloads = keep_downloads
        self._word_uploads_enabled = word_uploads_enabled
        self._max_file_size = max_file_size

    # --- Entry point ---

    async def handle_event(self, user_id: int, event: ChatEvent) -> None:
        """Route one inbound event through the transition table.

        Args:
            user_id: Chat user identifier
            event: Command, Text or DocumentUpload
        """
        before = self.states.get(user_id)
        transition = state_machine.resolve(before, event)
        if transition is None:
            logger.debug("Event ignored", kind=event.kind, state=before.value)
            return

        logger.info(
            "Handling event", kind=event.kind, state=before.value, action=transition.action
        )
        await getattr(self, transition.action)(user_id, event)

        after = self.states.get(user_id)
        if not state_machine.is_allowed(transition, before, after):
            logger.warning(
                "Unexpected state transition",
                action=transition.action,
                before=before.value,
                after=after.value,
            )
        elif after != before:
            logger.info("State changed", before=before.value, after=after.value)

    # --- Commands ---

    async def on_start(self, user_id: int, event: Command) -> None:
        if event.first_name:
            self.users.upsert(user_id, display_name=event.first_name)
        else:
            self.users.upsert(user_id)
        self.states.set(user_id, ConversationState.AWAITING_CV)
        await self.transport.send_message(user_id, welcome_message(event.first_name))

    async def on_help(self, user_id: int, event: Command) -> None:
        await self.transport.send_message(user_id, f"Available commands:\n\n{COMMANDS_HELP}")

    async def on_upload_new_cv(self, user_id: int, event: Command) -> None:
        if self.users.get(user_id) is None:
            self.states.set(user_id, ConversationState.AWAITING_NAME)
            await self.transport.send_message(user_id, START_FIRST)
            return
        self.states.set(user_id, ConversationState.AWAITING_CV)
        await self.transport.send_message(user_id, ASK_FOR_CV)

    async def on_suggest_titles(self, user_id: int, event: Command) -> None:
        profile = self.users.get(user_id)
        if profile is None or not profile.has_resume:
            await self.transport.send_message(user_id, UPLOAD_FIRST)
            return

        try:
            await self.transport.send_message(
                user_id, "🤖 Analyzing your CV for new job title suggestions..."
            )
            titles = await self.suggester.suggest(profile.resume_text)
            self.users.upsert(user_id, suggested_titles=titles)
            await self.transport.send_message(
                user_id,
                "💼 Here are your new job title suggestions:\n\n"
                f"{format_numbered_list(titles)}\n\n"
                "Use /search_for_jobs to find jobs with these titles.",
            )
        except Exception:
            logger.exception("Error suggesting new job titles")
            await self._send_error(user_id, TITLES_ERROR)

    async def on_search_for_jobs(self, user_id: int, event: Command) -> None:
        profile = self.users.get(user_id)
        if profile is None:
            self.states.set(user_id, ConversationState.AWAITING_NAME)
            await self.transport.send_message(user_id, START_FIRST)
            return
        if not profile.suggested_titles:
            await self.transport.send_message(user_id, SUGGEST_FIRST)
            return
        await self.search_jobs(user_id)

    async def on_update_location(self, user_id: int, event: Command) -> None:
        self.states.set(user_id, ConversationState.AWAITING_LOCATION)
        await self.transport.send_message(
            user_id,
            '📍 Please enter your preferred job location (e.g., "New York, NY" or "Remote"):',
        )

    # --- Documents ---

    async def on_document(self, user_id: int, event: DocumentUpload) -> None:
        try:
            mime_type = self._validate_document(event)
        except ValidationError as e:
            logger.info("Document rejected", reason=str(e), file_name=event.file_name)
            await self.transport.send_message(user_id, str(e))
            return

        if is_word_type(mime_type) and not self._word_uploads_enabled:
            await self.transport.send_message(user_id, WORD_COMING_SOON)
            return

        try:
            await self.transport.send_chat_action(user_id, "typing")
            resume_text = await self._download_and_extract(user_id, event, mime_type)
            profile = self.users.upsert(user_id, resume_text=resume_text)
        except Exception:
            logger.exception("Error processing document", file_name=event.file_name)
            await self._send_error(user_id, CV_PROCESSING_ERROR)
            self.states.set(user_id, ConversationState.IDLE)
            return

        if not profile.display_name:
            self.states.set(user_id, ConversationState.AWAITING_NAME)
            await self.transport.send_message(user_id, ASK_FOR_NAME)
            return

        await self.analyze_and_suggest(user_id)

    def _validate_document(self, event: DocumentUpload) -> str:
        mime_type = resolve_mime_type(event.mime_type, event.file_name)
        if mime_type is None:
            raise ValidationError(INVALID_FILE_TYPE)
        if event.file_size and event.file_size > self._max_file_size:
            limit = self._max_file_size // (1024 * 1024)
            raise ValidationError(FILE_TOO_LARGE.format(limit=limit))
        return mime_type

    def _download_path(self, user_id: int, file_name: str) -> Path:
        if self._download_dir is None:
            self._temp_dir = tempfile.TemporaryDirectory(prefix="smart-apply-")
            self._download_dir = Path(self._temp_dir.name)
        # Basename only, the name comes from the uploader
        safe_name = Path(file_name or "cv").name or "cv"
        return self._download_dir / f"{user_id}_{safe_name}"

    def cleanup(self) -> None:
        """Remove the temporary download directory, if one was created."""
        if self._temp_dir is not None:
            self._temp_dir.cleanup()
            self._temp_dir = None
            self._download_dir = None

    async def _download_and_extract(
        self, user_id: int, event: DocumentUpload, mime_type: str
    ) -> str:
        file_path = await self.transport.get_file(event.file_id)
        destination = self._download_path(user_id, event.file_name)
        await self.transport.download_file(file_path, destination)
        try:
            buffer = await asyncio.to_thread(destination.read_bytes)
            return await asyncio.to_thread(self.extractor.parse, buffer, mime_type)
        finally:
            if not self._keep_downloads:
                destination.unlink(missing_ok=True)

    # --- Free text ---

    async def on_name(self, user_id: int, event: Text) -> None:
        name = event.body.strip()
        if not name:
            await self.transport.send_message(user_id, ASK_FOR_NAME)
            return

        profile = self.users.upsert(user_id, display_name=name)
        if profile.has_resume:
            await self.analyze_and_suggest(user_id)
        else:
            self.states.set(user_id, ConversationState.AWAITING_CV)
            await self.transport.send_message(user_id, ASK_FOR_CV)

    async def on_text_awaiting_cv(self, user_id: int, event: Text) -> None:
        await self.transport.send_message(user_id, ASK_FOR_CV)

    async def on_confirmation(self, user_id: int, event: Text) -> None:
        text = event.body.strip()
        normalized = text.lower()

        if "search" in normalized or text == SEARCH_JOBS_LABEL:
            await self.search_jobs(user_id)
        elif "analyze" in normalized or text == ANALYZE_AGAIN_LABEL:
            self.states.set(user_id, ConversationState.AWAITING_CV)
            await self.transport.send_message(
                user_id, "Please upload your CV again.", remove_keyboard=True
            )
        else:
            await self.transport.send_message(
                user_id,
                CONFIRMATION_HINT,
                reply_keyboard=[SEARCH_JOBS_LABEL, ANALYZE_AGAIN_LABEL],
            )

    async def on_location(self, user_id: int, event: Text) -> None:
        location = event.body.strip()
        if not location:
            await self.transport.send_message(
                user_id, "📍 Please enter a location, or \"Worldwide\" for any location:"
            )
            return

        self.users.upsert(user_id, location=location)
        self.states.set(user_id, ConversationState.IDLE)
        await self.transport.send_message(
            user_id,
            f"📍 Location updated to: {location}\n\n"
            "Use /search_for_jobs to find jobs in this location.",
        )

    async def on_unrecognized_text(self, user_id: int, event: Text) -> None:
        await self.transport.send_message(user_id, UNRECOGNIZED)

    # --- Sub-flows ---

    async def analyze_and_suggest(self, user_id: int) -> None:
        """Suggest job titles for the stored résumé and offer the next step.

        Ends in AWAITING_CONFIRMATION on success, IDLE on any failure.
        """
        try:
            profile = self.users.get(user_id)
            if profile is None or not profile.has_resume:
                raise ValidationError("No CV text available for analysis")

            await self.transport.send_chat_action(user_id, "typing")
            titles = await self.suggester.suggest(profile.resume_text)
            self.users.upsert(user_id, suggested_titles=titles)

            await self.transport.send_message(
                user_id,
                "💼 Here are some job title suggestions based on your CV:\n\n"
                f"{format_numbered_list(titles)}\n\n"
                "What would you like to do next?",
                reply_keyboard=[SEARCH_JOBS_LABEL, ANALYZE_AGAIN_LABEL],
            )
        except Exception:
            logger.exception("Error analyzing CV")
            await self._send_error(user_id, CV_ANALYSIS_ERROR)
            self.states.set(user_id, ConversationState.IDLE)
            return

        self.states.set(user_id, ConversationState.AWAITING_CONFIRMATION)

    async def search_jobs(self, user_id: int) -> None:
        """Run the job-search fan-out; always leaves the user IDLE."""
        try:
            profile = self.users.get(user_id)
            if profile is None or not profile.suggested_titles:
                await self.transport.send_message(user_id, SUGGEST_FIRST)
                return

            await self.transport.send_message(
                user_id, "🔍 Searching for jobs...", remove_keyboard=True
            )
            result = await self.fanout.run(user_id, profile)
            if result["failed_titles"]:
                logger.warning(
                    "Job search failed for some titles",
                    failed_titles=result["failed_titles"],
                    searched=len(result["titles_searched"]),
                )
        except Exception:
            logger.exception("Error in job search")
            await self._send_error(user_id, SEARCH_ERROR)
        finally:
            self.states.set(user_id, ConversationState.IDLE)

    async def _send_error(self, user_id: int, text: str) -> None:
        """Report a failure; a broken transport is logged, not re-raised."""
        try:
            await self.transport.send_message(user_id, text)
        except Exception:
            logger.exception("Could not deliver error message")
