"""Shared test fixtures for the DSA Tracker test suite."""

import json

import pytest
import requests
from requests.adapters import HTTPAdapter

from app import create_app
from app.capture.signals import submission_accepted
from app.extensions import db as _db
from app.models import ExtensionToken, User


@pytest.fixture()
def app():
    """Create a Flask application configured for testing."""
    application = create_app('testing')
    yield application


@pytest.fixture()
def db(app):
    """Provide a clean database for each test."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def client(app, db):
    """Provide a Flask test client."""
    return app.test_client()


@pytest.fixture()
def owner(app, db):
    """A user with a live extension token.

    Returns plain values (not model objects) so they survive across
    request context boundaries without DetachedInstanceError.
    """
    user = User(username='coder', email='coder@test.com')
    db.session.add(user)
    db.session.flush()
    token = ExtensionToken.issue(user, name='pytest')
    db.session.commit()
    return {'user_id': user.id, 'token': token.token}


@pytest.fixture()
def auth_headers(owner):
    return {'Authorization': f"Bearer {owner['token']}"}


def make_response(payload=None, status=200, url='https://leetcode.com/'):
    """A ready-made ``requests.Response`` carrying *payload* as JSON."""
    resp = requests.Response()
    resp.status_code = status
    resp.url = url
    resp.headers['Content-Type'] = 'application/json'
    resp._content = json.dumps(payload).encode('utf-8') if payload is not None else b''
    return resp


class FakeJudge:
    """Stands in for the network below the capture adapter.

    ``routes`` maps a URL substring to a list of payloads; each matching
    request pops the next one (the last is repeated).  Every request that
    reaches the network is appended to ``sent``.
    """

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.sent = []

    def __call__(self, request, **kwargs):
        self.sent.append(request)
        for fragment, payloads in self.routes.items():
            if fragment in request.url:
                payload = payloads.pop(0) if len(payloads) > 1 else payloads[0]
                return make_response(payload, url=request.url)
        return make_response({}, url=request.url)


@pytest.fixture()
def json_response():
    return make_response


@pytest.fixture()
def fake_judge(monkeypatch):
    """Replace the real transport under every ``HTTPAdapter`` with a ``FakeJudge``."""
    judge = FakeJudge()
    monkeypatch.setattr(HTTPAdapter, 'send', judge)
    return judge


@pytest.fixture()
def received():
    """Events delivered on ``submission-accepted`` while the test runs."""
    events = []

    def receiver(sender, event=None, **kwargs):
        events.append(event)

    with submission_accepted.connected_to(receiver):
        yield events
