"""
Tests for the request composer
"""

import json
import pytest
from unittest.mock import patch
from apitester.client import HTTPResponse
from apitester.classifier import ResponseKind
from apitester.composer import RequestComposer, RequestDraft, DEFAULT_METHOD, DEFAULT_HEADERS
from apitester.coordinator import PersistenceCoordinator, OutcomeStatus
from apitester.errors import SendError
from apitester.storage.database import Storage
from apitester.storage.local_store import LocalStore


@pytest.fixture
def coordinator(tmp_path):
    storage = Storage(tmp_path / "composer.db")
    coordinator = PersistenceCoordinator(storage, LocalStore(tmp_path / "local"))
    coordinator.load()
    yield coordinator
    storage.close()


@pytest.fixture
def composer(coordinator):
    return RequestComposer(coordinator=coordinator)


class TestDraftDefaults:
    """Test the initial draft"""

    def test_defaults(self, composer):
        assert composer.draft.url == ""
        assert composer.draft.method == DEFAULT_METHOD == "POST"
        assert composer.draft.headers == DEFAULT_HEADERS
        assert composer.draft.body == ""


@patch('apitester.composer.send_request')
class TestSend:
    """Test sending the draft"""

    def test_no_url_does_nothing(self, mock_send, composer):
        """Test send without URL issues no request"""
        assert composer.send() is None
        mock_send.assert_not_called()

    def test_send_passes_parsed_headers(self, mock_send, composer):
        mock_send.return_value = HTTPResponse(200, '{"ok": true}')
        composer.draft = RequestDraft(url='https://e.com', method='PUT',
                                      headers='Accept: */*\nX-Id: 1', body='{}')
        composer.timeout = 7

        view = composer.send()

        assert view.kind == ResponseKind.STRUCTURED
        mock_send.assert_called_once_with('PUT', 'https://e.com', {'Accept': '*/*', 'X-Id': '1'},
                                          '{}', timeout=7)

    def test_send_error(self, mock_send, composer):
        """Test transport failures are kept on the composer"""
        mock_send.side_effect = SendError("Connection refused")
        composer.draft.url = 'https://e.com'

        assert composer.send() is None
        assert composer.error == "Connection refused"
        assert composer.response is None

    def test_no_content(self, mock_send, composer):
        mock_send.return_value = HTTPResponse(204, '')
        composer.draft.url = 'https://e.com'
        assert composer.send().kind == ResponseKind.NO_CONTENT

    def test_questions_and_answers(self, mock_send, composer):
        """Test answers selected after a question set produce the follow-up payload"""
        mock_send.return_value = HTTPResponse(200, json.dumps({
            'authToken': 't',
            'questions': [{'id': 'q1', 'text': 'Pick', 'answers': [{'id': 'a1', 'text': 'One'}]}]
        }))
        composer.draft.url = 'https://e.com/verify'
        composer.send()

        assert composer.answer_payload() is None
        composer.select_answer('q1', 'a1')
        assert composer.answer_payload() == {
            'authToken': 't',
            'answers': [{'questionId': 'q1', 'answerId': 'a1'}]
        }

    def test_new_questions_reset_answers(self, mock_send, composer):
        mock_send.return_value = HTTPResponse(200, '{"questions": []}')
        composer.draft.url = 'https://e.com'
        composer.selected_answers = {'old': 'x'}
        composer.send()
        assert composer.selected_answers == {}


class TestPresets:
    """Test preset save/load/delete through the composer"""

    def test_save_requires_url(self, composer):
        outcome = composer.save()
        assert outcome.status == OutcomeStatus.FAILED
        assert outcome.message == "URL required"

    def test_save_clears_name(self, composer, coordinator):
        """Test the name field is reset after saving"""
        composer.draft = RequestDraft(url='https://e.com/users', method='GET', name='Users')
        outcome = composer.save()

        assert outcome.succeeded
        assert outcome.data.name == 'Users'
        assert composer.draft.name == ""
        assert coordinator.saved_requests[0].id == outcome.data.id

    def test_load_request(self, composer, coordinator):
        """Test loading copies the preset into the draft"""
        saved = coordinator.save_request('https://e.com/x', 'DELETE', 'X-A: 1', 'body').data

        assert composer.load_request(saved.id) is True
        assert composer.draft.url == 'https://e.com/x'
        assert composer.draft.method == 'DELETE'
        assert composer.draft.headers == 'X-A: 1'
        assert composer.draft.body == 'body'
        assert composer.active_request_id == saved.id

    def test_load_unknown(self, composer):
        assert composer.load_request('missing') is False
        assert composer.active_request_id is None

    def test_delete_active_request(self, composer, coordinator):
        """Test deleting the loaded preset clears the active marker"""
        saved = coordinator.save_request('https://e.com/x', 'GET').data
        composer.load_request(saved.id)

        outcome = composer.delete_request(saved.id)

        assert outcome.succeeded
        assert composer.active_request_id is None
        assert coordinator.find(saved.id) is None
