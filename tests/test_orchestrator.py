"""Conversation flow tests for ConversationOrchestrator."""

import asyncio

import pytest
from loguru import logger

from smart_apply.core.errors import ExtractionFailure, TitleSuggestionFailure
from smart_apply.core.model.chat_event import Command, DocumentUpload, Text
from smart_apply.core.model.conversation_state import ConversationState as S
from smart_apply.core.orchestrator import (
    ANALYZE_AGAIN_LABEL,
    ASK_FOR_CV,
    ASK_FOR_NAME,
    CONFIRMATION_HINT,
    CV_ANALYSIS_ERROR,
    CV_PROCESSING_ERROR,
    INVALID_FILE_TYPE,
    SEARCH_JOBS_LABEL,
    START_FIRST,
    SUGGEST_FIRST,
    TITLES_ERROR,
    UNRECOGNIZED,
    UPLOAD_FIRST,
    WORD_COMING_SOON,
)
from smart_apply.core.tools.document_extractor import DOCX_MIME, PDF_MIME

from tests.conftest import TITLES, make_listing

USER = 4242


def pdf_upload(**overrides):
    fields = {"file_id": "file-1", "mime_type": PDF_MIME, "file_name": "cv.pdf"}
    fields.update(overrides)
    return DocumentUpload(**fields)


def send(orchestrator, *events):
    async def _run():
        for event in events:
            await orchestrator.handle_event(USER, event)

    asyncio.run(_run())


def test_full_flow_without_first_name_asks_for_name(orchestrator, transport, search_client):
    search_client.results["Backend Engineer"] = [make_listing("Backend Engineer")]

    send(orchestrator, Command(name="start"))
    assert orchestrator.states.get(USER) == S.AWAITING_CV
    assert orchestrator.users.get(USER).display_name is None

    send(orchestrator, pdf_upload())
    assert orchestrator.states.get(USER) == S.AWAITING_NAME
    assert transport.texts[-1] == ASK_FOR_NAME

    send(orchestrator, Text(body="Ada Lovelace"))
    profile = orchestrator.users.get(USER)
    assert profile.display_name == "Ada Lovelace"
    assert profile.suggested_titles == TITLES
    assert orchestrator.states.get(USER) == S.AWAITING_CONFIRMATION
    assert transport.messages[-1]["reply_keyboard"] == [SEARCH_JOBS_LABEL, ANALYZE_AGAIN_LABEL]

    send(orchestrator, Text(body=SEARCH_JOBS_LABEL))
    assert orchestrator.states.get(USER) == S.IDLE
    assert [q.query for q in search_client.queries] == TITLES[:3]


def test_start_with_first_name_goes_straight_to_suggestions(orchestrator, transport, suggester):
    send(orchestrator, Command(name="start", first_name="Grace"), pdf_upload())

    assert orchestrator.users.get(USER).display_name == "Grace"
    assert "Hello Grace" in transport.texts[0]
    assert suggester.calls == ["Senior Python developer, 8 years of backend work"]
    assert orchestrator.states.get(USER) == S.AWAITING_CONFIRMATION


def test_start_resets_state_and_keeps_resume(orchestrator):
    orchestrator.users.upsert(USER, display_name="Ada", resume_text="cv text")
    orchestrator.states.set(USER, S.AWAITING_LOCATION)

    send(orchestrator, Command(name="start"))

    assert orchestrator.states.get(USER) == S.AWAITING_CV
    assert orchestrator.users.get(USER).resume_text == "cv text"


def test_invalid_upload_changes_nothing(orchestrator, transport, extractor):
    orchestrator.users.upsert(USER, display_name="Ada", resume_text="old cv")
    orchestrator.states.set(USER, S.AWAITING_CV)
    before = orchestrator.users.get(USER)

    send(orchestrator, DocumentUpload(file_id="img", mime_type="image/png", file_name="me.png"))

    assert transport.texts == [INVALID_FILE_TYPE]
    assert orchestrator.users.get(USER) == before
    assert orchestrator.states.get(USER) == S.AWAITING_CV
    assert extractor.calls == []


def test_upload_recognised_by_extension(orchestrator, extractor):
    orchestrator.users.upsert(USER, display_name="Ada")
    send(orchestrator, pdf_upload(mime_type="application/octet-stream"))

    assert extractor.calls == [PDF_MIME]


def test_word_upload_is_refused_while_disabled(orchestrator, transport, extractor):
    orchestrator.states.set(USER, S.AWAITING_CV)
    send(orchestrator, pdf_upload(mime_type=DOCX_MIME, file_name="cv.docx"))

    assert transport.texts == [WORD_COMING_SOON]
    assert extractor.calls == []
    assert orchestrator.states.get(USER) == S.AWAITING_CV


def test_word_upload_is_extracted_when_enabled(orchestrator, extractor):
    orchestrator._word_uploads_enabled = True
    orchestrator.users.upsert(USER, display_name="Ada")

    send(orchestrator, pdf_upload(mime_type=DOCX_MIME, file_name="cv.docx"))

    assert extractor.calls == [DOCX_MIME]
    assert orchestrator.states.get(USER) == S.AWAITING_CONFIRMATION


def test_oversized_upload_is_rejected(orchestrator, transport, extractor):
    send(orchestrator, pdf_upload(file_size=50 * 1024 * 1024))

    assert "too large" in transport.texts[0]
    assert extractor.calls == []


def test_download_failure_reports_and_resets(orchestrator, transport):
    orchestrator.users.upsert(USER, display_name="Ada", resume_text="old cv")
    orchestrator.states.set(USER, S.AWAITING_CV)
    transport.fail_get_file = True

    send(orchestrator, pdf_upload())

    assert transport.texts == [CV_PROCESSING_ERROR]
    assert orchestrator.states.get(USER) == S.IDLE
    assert orchestrator.users.get(USER).resume_text == "old cv"


def test_extraction_failure_reports_and_resets(orchestrator, transport, extractor):
    extractor.error = ExtractionFailure("no text")
    orchestrator.states.set(USER, S.AWAITING_CV)

    send(orchestrator, pdf_upload())

    assert transport.texts == [CV_PROCESSING_ERROR]
    assert orchestrator.states.get(USER) == S.IDLE


def test_downloaded_file_is_removed_after_extraction(orchestrator, tmp_path):
    orchestrator.users.upsert(USER, display_name="Ada")
    send(orchestrator, pdf_upload())

    download_dir = tmp_path / "downloads"
    assert download_dir.exists()
    assert list(download_dir.iterdir()) == []


def test_suggestion_failure_after_upload_resets_to_idle(orchestrator, transport, suggester):
    orchestrator.users.upsert(USER, display_name="Ada", suggested_titles=["Old Title"])
    suggester.error = TitleSuggestionFailure("model down")

    send(orchestrator, pdf_upload())

    assert transport.texts[-1] == CV_ANALYSIS_ERROR
    assert orchestrator.states.get(USER) == S.IDLE
    assert orchestrator.users.get(USER).suggested_titles == ["Old Title"]


def test_suggest_command_overwrites_titles(orchestrator, suggester):
    orchestrator.users.upsert(USER, resume_text="cv", suggested_titles=["A", "B", "C", "D", "E"])
    orchestrator.states.set(USER, S.IDLE)

    send(orchestrator, Command(name="suggest_new_job_titles"))

    assert orchestrator.users.get(USER).suggested_titles == TITLES
    assert orchestrator.states.get(USER) == S.IDLE


def test_suggest_command_without_resume(orchestrator, transport, suggester):
    orchestrator.states.set(USER, S.AWAITING_LOCATION)

    send(orchestrator, Command(name="suggest_new_job_titles"))

    assert transport.texts == [UPLOAD_FIRST]
    assert suggester.calls == []
    assert orchestrator.states.get(USER) == S.AWAITING_LOCATION


def test_suggest_command_failure_keeps_old_titles(orchestrator, transport, suggester):
    orchestrator.users.upsert(USER, resume_text="cv", suggested_titles=["Old"])
    suggester.error = TitleSuggestionFailure("quota")

    send(orchestrator, Command(name="suggest_new_job_titles"))

    assert transport.texts[-1] == TITLES_ERROR
    assert orchestrator.users.get(USER).suggested_titles == ["Old"]


def test_search_without_profile_asks_to_start(orchestrator, transport, search_client):
    send(orchestrator, Command(name="search_for_jobs"))

    assert transport.texts == [START_FIRST]
    assert orchestrator.states.get(USER) == S.AWAITING_NAME
    assert search_client.queries == []


def test_search_without_titles_makes_no_calls(orchestrator, transport, search_client):
    orchestrator.users.upsert(USER, display_name="Ada", resume_text="cv")

    send(orchestrator, Command(name="search_for_jobs"))

    assert transport.texts == [SUGGEST_FIRST]
    assert search_client.queries == []
    assert orchestrator.states.get(USER) == S.IDLE


def test_search_continues_after_a_failed_title(orchestrator, transport, search_client):
    orchestrator.users.upsert(USER, suggested_titles=TITLES)
    orchestrator.states.set(USER, S.AWAITING_CONFIRMATION)
    search_client.failing.add("Python Developer")
    search_client.results["Platform Engineer"] = [make_listing("Platform Engineer")]

    send(orchestrator, Text(body="search please"))

    assert len(search_client.queries) == 3
    assert any('"Python Developer"' in text and text.startswith("❌") for text in transport.texts)
    assert "Platform Engineer" in transport.texts[-1]
    assert orchestrator.states.get(USER) == S.IDLE


def test_search_logs_the_failed_titles(orchestrator, search_client):
    orchestrator.users.upsert(USER, suggested_titles=TITLES)
    search_client.failing.add("Python Developer")
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="WARNING")
    try:
        send(orchestrator, Command(name="search_for_jobs"))
    finally:
        logger.remove(handler_id)

    warnings = [r for r in records if r["message"] == "Job search failed for some titles"]
    assert len(warnings) == 1
    assert warnings[0]["extra"]["failed_titles"] == ["Python Developer"]
    assert warnings[0]["extra"]["searched"] == 3


def test_search_ends_idle_even_when_transport_breaks(orchestrator, transport):
    orchestrator.users.upsert(USER, suggested_titles=TITLES)
    orchestrator.states.set(USER, S.AWAITING_CONFIRMATION)
    transport.fail_send = True

    send(orchestrator, Text(body=SEARCH_JOBS_LABEL))

    assert orchestrator.states.get(USER) == S.IDLE


@pytest.mark.parametrize("location", [None, "Worldwide", "worldwide", "WORLDWIDE"])
def test_worldwide_location_means_no_filter(orchestrator, search_client, location):
    fields = {"suggested_titles": TITLES}
    if location is not None:
        fields["location"] = location
    orchestrator.users.upsert(USER, **fields)

    send(orchestrator, Command(name="search_for_jobs"))

    assert [q.location for q in search_client.queries] == [None, None, None]


def test_update_location_then_search_uses_it(orchestrator, transport, search_client):
    orchestrator.users.upsert(USER, suggested_titles=TITLES)

    send(orchestrator, Command(name="update_location"))
    assert orchestrator.states.get(USER) == S.AWAITING_LOCATION

    send(orchestrator, Text(body="  Berlin  "))
    assert orchestrator.users.get(USER).location == "Berlin"
    assert orchestrator.states.get(USER) == S.IDLE
    assert "Berlin" in transport.texts[-1]

    send(orchestrator, Command(name="search_for_jobs"))
    assert {q.location for q in search_client.queries} == {"Berlin"}


def test_blank_location_reprompts(orchestrator):
    orchestrator.states.set(USER, S.AWAITING_LOCATION)
    send(orchestrator, Text(body="   "))

    assert orchestrator.states.get(USER) == S.AWAITING_LOCATION
    assert orchestrator.users.get(USER) is None


def test_blank_name_reprompts(orchestrator, transport):
    orchestrator.users.upsert(USER, resume_text="cv")
    orchestrator.states.set(USER, S.AWAITING_NAME)

    send(orchestrator, Text(body="  "))

    assert transport.texts == [ASK_FOR_NAME]
    assert orchestrator.states.get(USER) == S.AWAITING_NAME


def test_name_without_resume_asks_for_cv(orchestrator, transport):
    orchestrator.states.set(USER, S.AWAITING_NAME)
    send(orchestrator, Text(body="Ada"))

    assert orchestrator.states.get(USER) == S.AWAITING_CV
    assert transport.texts == [ASK_FOR_CV]


def test_analyze_again_asks_for_new_cv(orchestrator, transport):
    orchestrator.users.upsert(USER, suggested_titles=TITLES)
    orchestrator.states.set(USER, S.AWAITING_CONFIRMATION)

    send(orchestrator, Text(body=ANALYZE_AGAIN_LABEL))

    assert orchestrator.states.get(USER) == S.AWAITING_CV
    assert transport.messages[-1]["remove_keyboard"] is True


def test_unrecognised_confirmation_shows_hint(orchestrator, transport, search_client):
    orchestrator.states.set(USER, S.AWAITING_CONFIRMATION)
    send(orchestrator, Text(body="maybe later"))

    assert transport.texts == [CONFIRMATION_HINT]
    assert transport.messages[0]["reply_keyboard"] == [SEARCH_JOBS_LABEL, ANALYZE_AGAIN_LABEL]
    assert orchestrator.states.get(USER) == S.AWAITING_CONFIRMATION
    assert search_client.queries == []


def test_text_while_idle_is_unrecognised(orchestrator, transport):
    send(orchestrator, Text(body="hello?"))
    assert transport.texts == [UNRECOGNIZED]


def test_text_while_awaiting_cv_reminds_to_upload(orchestrator, transport):
    orchestrator.states.set(USER, S.AWAITING_CV)
    send(orchestrator, Text(body="here it is"))

    assert transport.texts == [ASK_FOR_CV]
    assert orchestrator.states.get(USER) == S.AWAITING_CV


def test_upload_new_cv_requires_profile(orchestrator, transport):
    send(orchestrator, Command(name="upload_new_cv"))
    assert orchestrator.states.get(USER) == S.AWAITING_NAME
    assert transport.texts == [START_FIRST]

    orchestrator.users.upsert(USER, display_name="Ada")
    send(orchestrator, Command(name="upload_new_cv"))
    assert orchestrator.states.get(USER) == S.AWAITING_CV


def test_unknown_command_is_ignored(orchestrator, transport):
    orchestrator.states.set(USER, S.AWAITING_CV)
    send(orchestrator, Command(name="frobnicate"))

    assert transport.messages == []
    assert orchestrator.states.get(USER) == S.AWAITING_CV
