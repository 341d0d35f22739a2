"""
Response shape classification

Sorts a response body into "no content", "raw text" or "structured data",
and recognises verification question sets (a ``questions`` list, optionally
with ``authToken`` and ``provider``) so they can be answered interactively.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from apitester.errors import ParseError

NO_CONTENT_TEXT = "(No content - 204 response)"


class ResponseKind(Enum):
    NO_CONTENT = "no-content"
    RAW_TEXT = "raw-text"
    STRUCTURED = "structured"


@dataclass
class Answer:
    id: str
    text: str


@dataclass
class Question:
    id: str
    text: str
    answers: List[Answer] = field(default_factory=list)


@dataclass
class QuestionSet:
    """Interactive question set found in a structured response"""
    questions: List[Question]
    auth_token: Optional[str] = None
    provider: Optional[str] = None


@dataclass
class ResponseView:
    """Classified response ready for display"""
    kind: ResponseKind
    display_text: str
    data: Any = None
    question_set: Optional[QuestionSet] = None

    @property
    def is_structured(self) -> bool:
        return self.kind == ResponseKind.STRUCTURED

    @property
    def has_questions(self) -> bool:
        return self.question_set is not None


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_json(text: str) -> Any:
    """
    Parse strict JSON (NaN/Infinity rejected)

    Raises:
        ParseError: If text is not valid JSON
    """
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError as e:
        raise ParseError(str(e)) from e


def _parse_question(raw: Any) -> Question:
    if not isinstance(raw, dict):
        return Question(id="", text=str(raw))
    answers = []
    for answer in raw.get('answers') or []:
        if isinstance(answer, dict):
            answers.append(Answer(id=str(answer.get('id', '')), text=str(answer.get('text', ''))))
    return Question(id=str(raw.get('id', '')), text=str(raw.get('text', '')), answers=answers)


def _extract_question_set(data: Any) -> Optional[QuestionSet]:
    if not isinstance(data, dict) or not isinstance(data.get('questions'), list):
        return None
    auth_token = data.get('authToken')
    provider = data.get('provider')
    return QuestionSet(
        questions=[_parse_question(q) for q in data['questions']],
        auth_token=str(auth_token) if auth_token is not None else None,
        provider=str(provider) if provider is not None else None
    )


def classify_response(status_code: int, text: str) -> ResponseView:
    """
    Classify a response body

    Args:
        status_code: HTTP status code
        text: Response body as text

    Returns:
        ResponseView with kind, display text and any question set
    """
    if status_code == 204 or not text:
        return ResponseView(kind=ResponseKind.NO_CONTENT, display_text=NO_CONTENT_TEXT)

    try:
        data = parse_json(text)
    except ParseError:
        return ResponseView(kind=ResponseKind.RAW_TEXT, display_text=text)

    return ResponseView(
        kind=ResponseKind.STRUCTURED,
        display_text=json.dumps(data, indent=2, ensure_ascii=False),
        data=data,
        question_set=_extract_question_set(data)
    )


def build_answer_payload(question_set: QuestionSet, selected: Dict[str, str]) -> Dict[str, Any]:
    """
    Build the body for the follow-up call that submits chosen answers

    Args:
        question_set: Question set from the previous response
        selected: Mapping of question id to chosen answer id

    Returns:
        Dict with authToken (when known) and a list of questionId/answerId pairs
    """
    payload: Dict[str, Any] = {}
    if question_set.auth_token is not None:
        payload['authToken'] = question_set.auth_token
    payload['answers'] = [
        {'questionId': question_id, 'answerId': answer_id}
        for question_id, answer_id in selected.items()
    ]
    return payload
