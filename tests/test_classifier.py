"""
Tests for response classification
"""

import json
import pytest
from apitester.classifier import (
    classify_response, build_answer_payload, parse_json,
    ResponseKind, QuestionSet, NO_CONTENT_TEXT
)
from apitester.errors import ParseError


QUESTIONS_RESPONSE = {
    'authToken': 'tok-123',
    'provider': 'experian',
    'questions': [
        {
            'id': 'q1',
            'text': 'Which street have you lived on?',
            'answers': [
                {'id': 'a1', 'text': 'Main St'},
                {'id': 'a2', 'text': 'Oak Ave'},
            ]
        },
        {
            'id': 'q2',
            'text': 'Which bank holds your mortgage?',
            'answers': [{'id': 'b1', 'text': 'First Bank'}]
        }
    ]
}


class TestClassifyResponse:
    """Test response shape detection"""

    def test_no_content_204(self):
        """Test 204 is shown as no content regardless of body"""
        view = classify_response(204, '')
        assert view.kind == ResponseKind.NO_CONTENT
        assert view.display_text == NO_CONTENT_TEXT

    def test_empty_body(self):
        """Test an empty body with another status is no content too"""
        view = classify_response(200, '')
        assert view.kind == ResponseKind.NO_CONTENT

    def test_plain_text(self):
        """Test unparsable bodies are shown verbatim"""
        view = classify_response(200, 'plain text')
        assert view.kind == ResponseKind.RAW_TEXT
        assert view.display_text == 'plain text'
        assert view.data is None
        assert view.has_questions is False

    def test_html_error_page(self):
        body = '<html><body>502 Bad Gateway</body></html>'
        view = classify_response(502, body)
        assert view.kind == ResponseKind.RAW_TEXT
        assert view.display_text == body

    def test_structured_is_pretty_printed(self):
        """Test JSON bodies are re-serialised with two-space indentation"""
        view = classify_response(200, '{"a":1,"b":[1,2]}')
        assert view.is_structured
        assert view.data == {'a': 1, 'b': [1, 2]}
        assert view.display_text == json.dumps({'a': 1, 'b': [1, 2]}, indent=2)
        assert view.question_set is None

    def test_structured_keeps_unicode(self):
        view = classify_response(200, '{"name": "Zoë"}')
        assert 'Zoë' in view.display_text

    def test_structured_array(self):
        """Test a top-level array is structured without questions"""
        view = classify_response(200, '[{"questions": []}]')
        assert view.is_structured
        assert view.question_set is None

    def test_nan_is_raw_text(self):
        """Test non-standard JSON constants are not accepted"""
        view = classify_response(200, '{"value": NaN}')
        assert view.kind == ResponseKind.RAW_TEXT

    def test_question_set(self):
        """Test a questions list is recognised with token and provider"""
        view = classify_response(200, json.dumps(QUESTIONS_RESPONSE))

        assert view.has_questions
        question_set = view.question_set
        assert question_set.auth_token == 'tok-123'
        assert question_set.provider == 'experian'
        assert [q.id for q in question_set.questions] == ['q1', 'q2']
        assert [a.text for a in question_set.questions[0].answers] == ['Main St', 'Oak Ave']

    def test_question_set_without_token(self):
        view = classify_response(200, '{"questions": [{"id": 7, "text": "Pick", "answers": []}]}')
        assert view.question_set.auth_token is None
        assert view.question_set.provider is None
        assert view.question_set.questions[0].id == '7'

    def test_questions_not_a_list(self):
        view = classify_response(200, '{"questions": "none"}')
        assert view.question_set is None


class TestParseJson:
    """Test strict JSON parsing"""

    def test_valid(self):
        assert parse_json('{"a": null}') == {'a': None}

    @pytest.mark.parametrize("text", ['{', 'NaN', '[Infinity]', '-Infinity', 'undefined'])
    def test_invalid(self, text):
        with pytest.raises(ParseError):
            parse_json(text)


class TestAnswerPayload:
    """Test the follow-up answer payload"""

    def test_payload(self):
        """Test payload carries the token and selected pairs"""
        view = classify_response(200, json.dumps(QUESTIONS_RESPONSE))
        payload = build_answer_payload(view.question_set, {'q1': 'a2', 'q2': 'b1'})

        assert payload == {
            'authToken': 'tok-123',
            'answers': [
                {'questionId': 'q1', 'answerId': 'a2'},
                {'questionId': 'q2', 'answerId': 'b1'},
            ]
        }

    def test_payload_without_token(self):
        payload = build_answer_payload(QuestionSet(questions=[]), {'q1': 'a1'})
        assert 'authToken' not in payload
        assert payload['answers'] == [{'questionId': 'q1', 'answerId': 'a1'}]
