"""Pull ``{language, code, problemId}`` out of a submission call.

The judge site sends code submissions in several encodings.  Each known
encoding is a ``PayloadShape``; ``extract_payload`` tries them in the
order of ``PAYLOAD_SHAPES`` and keeps the first one that recognises the
body and recovers at least one field.  When no shape yields the code,
the page's code-editor buffer is used instead.

Nothing in here raises: a shape that fails to parse is an extraction miss.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Callable
from urllib.parse import parse_qs

from werkzeug.wrappers import Request

from .common import ExtractedPayload, OutboundCall, as_id

logger = logging.getLogger(__name__)

SUBMIT_OPERATIONS = ('submitCode', 'submitSolution')


@dataclass(frozen=True)
class PayloadShape:
    name: str
    extract: Callable[[OutboundCall], ExtractedPayload | None]


def _first(mapping, *keys):
    """First present, non-empty value among *keys*."""
    for key in keys:
        value = mapping.get(key)
        if value not in (None, ''):
            return value
    return None


def _text_or_none(value):
    return value if isinstance(value, str) and value else None


def _payload(shape, language, code, problem_id) -> ExtractedPayload | None:
    payload = ExtractedPayload(
        language=_text_or_none(language),
        code=_text_or_none(code),
        problem_id=as_id(problem_id),
        shape=shape,
    )
    return None if payload.is_empty() else payload


def _from_multipart(call: OutboundCall) -> ExtractedPayload | None:
    content_type = call.content_type or ''
    if not content_type.lower().startswith('multipart/form-data'):
        return None
    body = call.body.encode('utf-8') if isinstance(call.body, str) else call.body
    form = Request.from_values(
        data=body, content_type=content_type, method='POST',
    ).form
    return _payload(
        'multipart',
        form.get('lang'),
        form.get('typed_code'),
        form.get('question_id'),
    )


def _from_urlencoded(call: OutboundCall) -> ExtractedPayload | None:
    text = call.text or ''
    if '=' not in text or '&' not in text or text.lstrip()[:1] in ('{', '['):
        return None
    fields = {k: v[0] for k, v in parse_qs(text, keep_blank_values=True).items()}
    return _payload(
        'urlencoded',
        fields.get('lang'),
        _first(fields, 'typed_code', 'code'),
        _first(fields, 'question_id', 'questionId'),
    )


def _load_json_object(call: OutboundCall):
    data = json.loads(call.text or '')
    return data if isinstance(data, dict) else None


def _from_graphql_submit(call: OutboundCall) -> ExtractedPayload | None:
    data = _load_json_object(call)
    if not data or data.get('operationName') not in SUBMIT_OPERATIONS:
        return None
    variables = data.get('variables') or {}
    return _payload(
        'graphql-submit',
        _first(variables, 'lang', 'languageSlug'),
        _first(variables, 'code', 'sourceCode', 'typedCode'),
        _first(variables, 'submissionId', 'titleSlug'),
    )


def _from_json(call: OutboundCall) -> ExtractedPayload | None:
    data = _load_json_object(call)
    if not data:
        return None
    return _payload(
        'json',
        _first(data, 'lang', 'language'),
        _first(data, 'typed_code', 'submission_code', 'code', 'sourceCode'),
        _first(data, 'question_id', 'questionId', 'titleSlug'),
    )


PAYLOAD_SHAPES = [
    PayloadShape('multipart', _from_multipart),
    PayloadShape('urlencoded', _from_urlencoded),
    PayloadShape('graphql-submit', _from_graphql_submit),
    PayloadShape('json', _from_json),
]


def read_editor_buffer(editor_buffer) -> str | None:
    """Current contents of the page's code editor, if one is available."""
    if editor_buffer is None:
        return None
    try:
        return _text_or_none(editor_buffer())
    except Exception as e:
        logger.debug(f"Editor buffer unavailable: {e}")
        return None


def extract_payload(call: OutboundCall, editor_buffer=None) -> ExtractedPayload:
    """Best-effort extraction; every field of the result may be ``None``."""
    result = ExtractedPayload()
    if call.body:
        for shape in PAYLOAD_SHAPES:
            try:
                found = shape.extract(call)
            except Exception as e:
                logger.debug(f"Payload shape {shape.name} failed: {e}")
                continue
            if found is not None:
                result = found
                break

    if not result.code:
        code = read_editor_buffer(editor_buffer)
        if code:
            result.code = code
            if result.shape is None:
                result.shape = 'editor'
    return result


def extract_submission_id(data) -> str | None:
    """Judge-issued submission id from a submit response body."""
    if not isinstance(data, dict):
        return None
    for key in ('submission_id', 'submissionId'):
        found = as_id(data.get(key))
        if found:
            return found
    nested = data.get('data')
    if isinstance(nested, dict):
        for operation in SUBMIT_OPERATIONS:
            result = nested.get(operation)
            if isinstance(result, dict):
                found = as_id(_first(result, 'id', 'submissionId'))
                if found:
                    return found
    return as_id(data.get('interpret_id'))
