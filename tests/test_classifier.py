"""Tests for outbound call classification."""

import json

import pytest

from app.capture.classifier import classify
from app.capture.common import CallKind, OutboundCall


def _call(url, method='GET', body=None, content_type=None):
    return OutboundCall(url=url, method=method, body=body, content_type=content_type)


class TestSubmissionCalls:
    @pytest.mark.parametrize('url', [
        'https://leetcode.com/problems/two-sum/submit/',
        'https://judge.example.com/api/submit',
        'https://judge.example.com/api/submissions/',
        'https://leetcode.com/problems/42/submit',
    ])
    def test_mutating_call_with_body(self, url):
        call = _call(url, method='POST', body='{"lang": "python3"}')
        assert classify(call) == CallKind.SUBMISSION

    @pytest.mark.parametrize('method', ['PUT', 'PATCH', 'post'])
    def test_other_mutating_verbs(self, method):
        call = _call('https://leetcode.com/problems/two-sum/submit/', method=method, body='x=1&y=2')
        assert classify(call) == CallKind.SUBMISSION

    def test_submit_without_body_is_not_submission(self):
        call = _call('https://leetcode.com/problems/two-sum/submit/', method='POST')
        assert classify(call) == CallKind.PASSTHROUGH

    def test_get_to_submit_path_is_passthrough(self):
        call = _call('https://leetcode.com/problems/two-sum/submit/', method='GET', body='a')
        assert classify(call) == CallKind.PASSTHROUGH

    def test_graphql_mutation_is_submission(self):
        body = json.dumps({'operationName': 'submitCode', 'variables': {'code': 'x'}})
        call = _call('https://leetcode.com/graphql', method='POST', body=body)
        assert classify(call) == CallKind.SUBMISSION

    def test_submitted_word_is_not_submit_segment(self):
        call = _call('https://judge.example.com/submitted-list', method='POST', body='{}')
        assert classify(call) == CallKind.PASSTHROUGH


class TestStatusPolls:
    @pytest.mark.parametrize('url', [
        'https://leetcode.com/submissions/detail/123456/check/',
        'https://judge.example.com/submissions/123456',
        'https://judge.example.com/api/check/123456',
        'https://judge.example.com/api/status?submission_id=123456',
        'https://judge.example.com/api/status?submissionId=123456',
        'https://judge.example.com/api/check_submission?id=1',
    ])
    def test_poll_shapes(self, url):
        assert classify(_call(url)) == CallKind.STATUS_POLL

    def test_graphql_submission_details_query(self):
        body = json.dumps({
            'operationName': 'submissionDetails',
            'query': 'query submissionDetails($submissionId: Int!) { ... }',
            'variables': {'submissionId': 123456},
        })
        call = _call('https://leetcode.com/graphql/', method='POST', body=body)
        assert classify(call) == CallKind.STATUS_POLL

    def test_graphql_details_query_with_bytes_body(self):
        body = b'{"query": "submissionDetails", "variables": {"submissionId": 9}}'
        call = _call('https://leetcode.com/graphql', method='POST', body=body)
        assert classify(call) == CallKind.STATUS_POLL

    def test_graphql_url_with_submission_id_is_poll(self):
        call = _call('https://leetcode.com/graphql?submission_id=123456')
        assert classify(call) == CallKind.STATUS_POLL

    def test_graphql_get_without_details_is_passthrough(self):
        call = _call('https://leetcode.com/graphql?query=userStatus')
        assert classify(call) == CallKind.PASSTHROUGH


class TestPassthrough:
    @pytest.mark.parametrize('url', [
        'https://leetcode.com/problems/two-sum/description/',
        'https://leetcode.com/static/app.js',
        'https://leetcode.com/api/problems/all/',
    ])
    def test_unrelated_traffic(self, url):
        assert classify(_call(url)) == CallKind.PASSTHROUGH

    def test_non_string_url_never_raises(self):
        assert classify(_call(None, method='POST', body='x')) == CallKind.PASSTHROUGH

    def test_broken_call_object_never_raises(self):
        class Broken:
            url = 'https://leetcode.com/graphql'
            method = 'POST'
            body = 'submissionDetails'

            @property
            def text(self):
                raise RuntimeError('boom')

        assert classify(Broken()) == CallKind.PASSTHROUGH
