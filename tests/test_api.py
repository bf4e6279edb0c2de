"""Tests for the JSON API used by the browser extension."""

from datetime import datetime, timedelta
from unittest.mock import patch

from app.models import Activity, ExtensionToken, Problem, Statistics, Submission
from app.services.ingest_service import TransactionConflictError

EXTENSION_ORIGIN = 'chrome-extension://abcdefghijklmnop'


def _track_body(**extra):
    body = {
        'problemId': 'two-sum',
        'submissionId': '555',
        'code': 'class Solution: pass',
        'language': 'python3',
        'status': 'Accepted',
        'runtime': '40 ms',
        'memory': '17 MB',
    }
    body.update(extra)
    return body


# ──────────────────────────────────────────────
# Authentication
# ──────────────────────────────────────────────

class TestAuth:
    def test_missing_header(self, client):
        resp = client.post('/api/submissions/track', json=_track_body())
        assert resp.status_code == 401
        assert resp.get_json() == {'error': 'Unauthorized'}

    def test_malformed_header_skips_database(self, client):
        with patch.object(ExtensionToken, 'validate') as validate:
            resp = client.post(
                '/api/submissions/track', json=_track_body(),
                headers={'Authorization': 'Token abc'},
            )
        assert resp.status_code == 401
        validate.assert_not_called()

    def test_unknown_token(self, client, owner):
        resp = client.post(
            '/api/submissions/track', json=_track_body(),
            headers={'Authorization': 'Bearer not-a-token'},
        )
        assert resp.status_code == 401

    def test_revoked_token(self, client, db, owner, auth_headers):
        token = ExtensionToken.query.filter_by(token=owner['token']).one()
        token.revoked = True
        db.session.commit()
        resp = client.get('/api/stats', headers=auth_headers)
        assert resp.status_code == 401

    def test_valid_token_touches_last_used(self, client, owner, auth_headers):
        client.get('/api/stats', headers=auth_headers)
        token = ExtensionToken.query.filter_by(token=owner['token']).one()
        assert token.last_used is not None


# ──────────────────────────────────────────────
# POST /api/submissions/track
# ──────────────────────────────────────────────

class TestTrack:
    def test_created(self, client, owner, auth_headers):
        resp = client.post('/api/submissions/track', json=_track_body(), headers=auth_headers)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data['success'] is True
        assert data['isNew'] is True
        assert data['submission']['externalId'] == '555'
        assert data['submission']['runtime'] == '40 ms'
        assert data['problem']['status'] == 'Solved'
        assert data['error'] is None
        assert data['solutionVersion'] is None

    def test_error_and_version_returned(self, client, auth_headers):
        body = _track_body(
            status='Runtime Error', errorMessage='ZeroDivisionError',
            versionInfo={'changelog': 'first try'},
        )
        resp = client.post('/api/submissions/track', json=body, headers=auth_headers)
        assert resp.status_code == 201
        data = resp.get_json()
        assert data['error']['errorType'] == 'runtime'
        assert data['error']['errorMessage'] == 'ZeroDivisionError'
        assert data['solutionVersion']['versionNumber'] == 1
        assert data['solutionVersion']['changelog'] == 'first try'

    def test_duplicate_delivery(self, client, owner, auth_headers):
        client.post('/api/submissions/track', json=_track_body(), headers=auth_headers)
        resp = client.post('/api/submissions/track', json=_track_body(), headers=auth_headers)
        assert resp.status_code == 201
        assert resp.get_json()['isNew'] is False
        assert Submission.query.count() == 1
        stats = Statistics.query.filter_by(user_id=owner['user_id']).one()
        assert stats.total_solved == 1
        assert stats.streak == 1

    def test_missing_field(self, client, auth_headers):
        resp = client.post(
            '/api/submissions/track', json=_track_body(code=''), headers=auth_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json() == {'error': 'Missing required fields'}
        assert Problem.query.count() == 0

    def test_non_json_body(self, client, auth_headers):
        resp = client.post(
            '/api/submissions/track', data='not json', headers=auth_headers,
            content_type='text/plain',
        )
        assert resp.status_code == 400

    def test_conflict_surfaces_as_server_error(self, client, auth_headers):
        with patch(
            'app.services.ingest_service.IngestService.track',
            side_effect=TransactionConflictError('Transaction conflict, retries exhausted'),
        ):
            resp = client.post('/api/submissions/track', json=_track_body(), headers=auth_headers)
        assert resp.status_code == 500
        assert 'retries exhausted' in resp.get_json()['error']

    def test_unexpected_error(self, client, auth_headers):
        with patch(
            'app.services.ingest_service.IngestService.track',
            side_effect=RuntimeError('disk full'),
        ):
            resp = client.post('/api/submissions/track', json=_track_body(), headers=auth_headers)
        assert resp.status_code == 500
        assert resp.get_json() == {'error': 'disk full'}


# ──────────────────────────────────────────────
# POST /api/extension/offline-sync
# ──────────────────────────────────────────────

class TestOfflineSync:
    URL = 'https://leetcode.com/problems/two-sum/'

    def test_replayed_submission_counts_nothing(self, client, owner, auth_headers):
        client.post('/api/submissions/track', json=_track_body(), headers=auth_headers)
        stats_before = Statistics.query.filter_by(user_id=owner['user_id']).one().to_dict()

        resp = client.post('/api/extension/offline-sync', headers=auth_headers, json={
            'problems': [],
            'submissions': [{
                'problemUrl': self.URL,
                'offlineId': 'offline-abc',
                'code': 'class Solution: pass',
                'status': 'Accepted',
                'language': 'python3',
            }],
            'pendingDeletions': {'problems': [], 'submissions': []},
        })

        assert resp.status_code == 200
        data = resp.get_json()
        assert data['success'] is True
        assert data['processed']['submissions'] == 0
        assert data['processed']['duplicates'] == 1
        assert data['errors'] == []
        assert Submission.query.count() == 1
        stats_after = Statistics.query.filter_by(user_id=owner['user_id']).one().to_dict()
        assert stats_after == stats_before
        assert Activity.query.one().problems_solved == 1

    def test_per_item_errors_collected(self, client, auth_headers):
        resp = client.post('/api/extension/offline-sync', headers=auth_headers, json={
            'problems': [{'url': self.URL, 'title': 'Two Sum'}, {'url': 'x'}],
            'submissions': [{'status': 'Accepted'}],
        })
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['processed']['problems'] == 1
        assert len(data['errors']) == 2
        assert isinstance(data['timestamp'], int)

    def test_invalid_body(self, client, auth_headers):
        resp = client.post(
            '/api/extension/offline-sync', data='[]', headers=auth_headers,
            content_type='application/json',
        )
        assert resp.status_code == 400

    def test_requires_auth(self, client):
        resp = client.post('/api/extension/offline-sync', json={})
        assert resp.status_code == 401


# ──────────────────────────────────────────────
# Read-only endpoints
# ──────────────────────────────────────────────

class TestStats:
    def test_empty(self, client, auth_headers):
        resp = client.get('/api/stats', headers=auth_headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data['totalSolved'] == 0
        assert data['streak'] == 0
        assert data['difficultyDistribution'] == {}
        assert data['recentSubmissions'] == []
        assert data['dailyActivity'] == []

    def test_after_solves(self, client, auth_headers):
        client.post('/api/submissions/track', headers=auth_headers, json=_track_body(
            platformDifficulty='Hard', platformTitle='Two Sum',
        ))
        client.post('/api/submissions/track', headers=auth_headers, json=_track_body(
            problemId='lru-cache', submissionId='556', status='Wrong Answer',
        ))
        data = client.get('/api/stats', headers=auth_headers).get_json()
        assert data['totalSolved'] == 1
        assert data['hardCount'] == 1
        assert data['difficultyDistribution'] == {'Hard': 1}
        assert len(data['recentSubmissions']) == 2
        assert {s['problemTitle'] for s in data['recentSubmissions']} == {
            'Two Sum', 'LeetCode Problem lru-cache',
        }
        assert len(data['dailyActivity']) == 1

    def test_activities(self, client, db, owner, auth_headers):
        today = datetime.utcnow().date()
        Activity.bump(owner['user_id'], today - timedelta(days=40), solved=1)
        Activity.bump(owner['user_id'], today, solved=2, streak=1)
        db.session.commit()

        data = client.get('/api/user/activities?days=7', headers=auth_headers).get_json()
        assert [a['date'] for a in data['activities']] == [today.isoformat()]
        assert data['streak'] == 0

        data = client.get('/api/user/activities', headers=auth_headers).get_json()
        assert len(data['activities']) == 2

    def test_days_clamped(self, client, auth_headers):
        resp = client.get('/api/user/activities?days=-5', headers=auth_headers)
        assert resp.status_code == 200


# ──────────────────────────────────────────────
# CORS
# ──────────────────────────────────────────────

class TestCors:
    def test_extension_origin(self, client, auth_headers):
        resp = client.get(
            '/api/stats', headers={**auth_headers, 'Origin': EXTENSION_ORIGIN},
        )
        assert resp.headers['Access-Control-Allow-Origin'] == EXTENSION_ORIGIN
        assert resp.headers['Access-Control-Allow-Credentials'] == 'true'
        assert 'Authorization' in resp.headers['Access-Control-Allow-Headers']

    def test_preflight(self, client):
        resp = client.options('/api/submissions/track', headers={
            'Origin': EXTENSION_ORIGIN,
            'Access-Control-Request-Method': 'POST',
        })
        assert resp.status_code == 200
        assert resp.headers['Access-Control-Allow-Methods'] == 'GET, POST, OPTIONS'
        assert resp.headers['Access-Control-Max-Age'] == '86400'

    def test_other_origin_gets_no_headers(self, client, auth_headers):
        resp = client.get(
            '/api/stats', headers={**auth_headers, 'Origin': 'https://evil.example.com'},
        )
        assert resp.status_code == 200
        assert 'Access-Control-Allow-Origin' not in resp.headers

    def test_unauthorized_response_still_has_cors(self, client):
        resp = client.post(
            '/api/submissions/track', json={}, headers={'Origin': EXTENSION_ORIGIN},
        )
        assert resp.status_code == 401
        assert resp.headers['Access-Control-Allow-Origin'] == EXTENSION_ORIGIN


class TestHealth:
    def test_health(self, client):
        resp = client.get('/health')
        assert resp.get_json()['status'] == 'ok'
