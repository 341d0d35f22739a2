"""
Request composer

Holds the request being edited and the last response, and routes preset
save/load/delete through the persistence coordinator.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging

from apitester.classifier import ResponseView, classify_response, build_answer_payload
from apitester.client import HTTPResponse, send_request, parse_headers, DEFAULT_TIMEOUT
from apitester.coordinator import PersistenceCoordinator, Outcome, OutcomeStatus
from apitester.errors import SendError

logger = logging.getLogger(__name__)

DEFAULT_METHOD = "POST"
DEFAULT_HEADERS = "Content-Type: application/json; charset=utf-8"


@dataclass
class RequestDraft:
    """In-progress request"""
    url: str = ""
    method: str = DEFAULT_METHOD
    headers: str = DEFAULT_HEADERS
    body: str = ""
    name: str = ""


@dataclass
class RequestComposer:
    """Draft request, last response and the presets around them"""
    coordinator: Optional[PersistenceCoordinator]
    draft: RequestDraft = field(default_factory=RequestDraft)
    timeout: int = DEFAULT_TIMEOUT
    response: Optional[HTTPResponse] = None
    view: Optional[ResponseView] = None
    error: Optional[str] = None
    active_request_id: Optional[str] = None
    selected_answers: Dict[str, str] = field(default_factory=dict)

    def send(self) -> Optional[ResponseView]:
        """
        Send the draft request and classify the response

        Returns:
            ResponseView, or None when there is no URL or the request failed
            (``error`` holds the reason)
        """
        if not self.draft.url:
            return None

        self.error = None
        self.response = None
        self.view = None

        try:
            self.response = send_request(
                self.draft.method,
                self.draft.url,
                parse_headers(self.draft.headers),
                self.draft.body,
                timeout=self.timeout
            )
        except SendError as e:
            self.error = str(e)
            return None

        self.view = classify_response(self.response.status_code, self.response.text)
        if self.view.has_questions:
            self.selected_answers = {}
        return self.view

    def save(self) -> Outcome:
        """Save the draft as a preset; the draft name is cleared afterwards"""
        if not self.draft.url:
            return Outcome(OutcomeStatus.FAILED, "URL required")
        outcome = self.coordinator.save_request(
            self.draft.url,
            self.draft.method,
            self.draft.headers,
            self.draft.body,
            name=self.draft.name
        )
        self.draft.name = ""
        return outcome

    def load_request(self, request_id: str) -> bool:
        """
        Copy a saved preset into the draft

        Returns:
            True if the preset exists
        """
        request = self.coordinator.find(request_id)
        if request is None:
            return False
        self.draft.url = request.url
        self.draft.method = request.method
        self.draft.headers = request.headers
        self.draft.body = request.body
        self.active_request_id = request.id
        return True

    def delete_request(self, request_id: str) -> Outcome:
        outcome = self.coordinator.delete_request(request_id)
        if self.active_request_id == request_id:
            self.active_request_id = None
        return outcome

    def select_answer(self, question_id: str, answer_id: str):
        self.selected_answers[question_id] = answer_id

    def answer_payload(self) -> Optional[Dict[str, Any]]:
        """Body for submitting the selected answers, or None if nothing to submit"""
        if not self.view or not self.view.question_set or not self.selected_answers:
            return None
        return build_answer_payload(self.view.question_set, self.selected_answers)
