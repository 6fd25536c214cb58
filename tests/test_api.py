import pytest
from datetime import datetime, timedelta

from blockvote import create_app

T0 = datetime(2030, 1, 1, 9, 0, 0)


class FrozenClock:
    def __init__(self, start):
        self._now = start

    def advance(self, **kwargs):
        self._now += timedelta(**kwargs)

    def __call__(self):
        return self._now


@pytest.fixture
def clock():
    return FrozenClock(T0)


@pytest.fixture
def app(clock):
    app = create_app('blockvote.config.TestingConfig')
    services = app.extensions['blockvote']
    services.elections.clock = clock
    services.votes.clock = clock
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_token(client):
    resp = client.post('/auth/login', json={"email": "admin@blockvote.com", "password": "admin123"})
    assert resp.status_code == 200
    return resp.get_json()["access_token"]


@pytest.fixture
def voter_token(client):
    resp = client.post('/auth/register', json={
        "name": "Ada",
        "email": "ada@example.com",
        "password": "secret1",
        "confirmPassword": "secret1",
    })
    assert resp.status_code == 201
    return resp.get_json()["access_token"]


@pytest.fixture
def election_id(client, admin_token):
    resp = client.post('/elections', headers=bearer(admin_token), json={
        "title": "Board",
        "description": "Annual board election",
        "candidates": ["Alice", "Bob", ""],
        "startDate": "2030-01-01T10:00:00Z",
        "endDate": "2030-01-01T12:00:00Z",
    })
    assert resp.status_code == 201
    election = resp.get_json()["election"]
    assert election["candidates"] == ["Alice", "Bob"]
    assert election["status"] == "upcoming"
    return election["id"]


def test_register_and_me(client, voter_token):
    resp = client.get('/auth/me', headers=bearer(voter_token))
    user = resp.get_json()["user"]
    assert user["email"] == "ada@example.com"
    assert user["role"] == "voter"
    assert "passwordHash" not in user


def test_register_duplicate_email(client, voter_token):
    """Registering an email twice is a 409 regardless of case."""
    resp = client.post('/auth/register', json={
        "name": "Ada Again",
        "email": "ADA@example.com",
        "password": "secret1",
        "confirmPassword": "secret1",
    })
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "duplicate"


def test_register_requires_json_body(client):
    resp = client.post('/auth/register', data="nope")
    assert resp.status_code == 400


def test_login_with_wrong_password(client):
    resp = client.post('/auth/login', json={"email": "admin@blockvote.com", "password": "wrong"})
    assert resp.status_code == 401
    assert resp.get_json()["code"] == "unauthorized"


def test_login_with_numeric_password(client):
    """A non-string password gets the generic 401, not a server error."""
    resp = client.post('/auth/login', json={"email": "admin@blockvote.com", "password": 123456})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid email or password", "code": "unauthorized"}


def test_wallet_login_is_disabled(client):
    resp = client.post('/auth/wallet', json={"walletAddress": "0xabc"})
    assert resp.status_code == 501
    assert resp.get_json()["code"] == "feature_disabled"


def test_voter_cannot_create_election(client, voter_token):
    resp = client.post('/elections', headers=bearer(voter_token), json={"title": "x"})
    assert resp.status_code == 403


def test_create_election_validation(client, admin_token):
    resp = client.post('/elections', headers=bearer(admin_token), json={
        "title": "Board",
        "description": "d",
        "candidates": ["Alice", "Bob"],
        "startDate": "2030-01-01T08:00:00",
        "endDate": "2030-01-01T12:00:00",
    })
    assert resp.status_code == 400
    assert "past" in resp.get_json()["error"]


def test_full_voting_flow(client, clock, admin_token, voter_token, election_id):
    """Create, vote, tally, history and receipt checks through the HTTP API."""
    resp = client.post(f'/elections/{election_id}/vote', headers=bearer(voter_token), json={"candidate": "Alice"})
    assert resp.status_code == 409  # not started yet

    clock.advance(hours=1, minutes=30)

    resp = client.post(f'/elections/{election_id}/vote', headers=bearer(voter_token), json={"candidate": "Carol"})
    assert resp.status_code == 400

    resp = client.post(f'/elections/{election_id}/vote', headers=bearer(voter_token), json={"candidate": "Alice"})
    assert resp.status_code == 201
    body = resp.get_json()
    tx_hash = body["vote"]["transactionHash"]
    receipt = body["receipt"]

    resp = client.post(f'/elections/{election_id}/vote', headers=bearer(voter_token), json={"candidate": "Bob"})
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "duplicate"

    resp = client.get(f'/elections/{election_id}', headers=bearer(voter_token))
    election = resp.get_json()["election"]
    assert election["status"] == "active"
    assert election["hasVoted"] is True
    assert election["voteCount"] == 1

    resp = client.get(f'/elections/{election_id}/results', headers=bearer(voter_token))
    results = resp.get_json()
    assert results["totalVotes"] == 1
    assert results["results"][0]["candidate"] == "Alice"
    assert results["winner"] is None  # still active

    clock.advance(hours=2)
    results = client.get(f'/elections/{election_id}/results', headers=bearer(voter_token)).get_json()
    assert results["status"] == "completed"
    assert results["winner"] == "Alice"

    history = client.get('/me/votes', headers=bearer(voter_token)).get_json()["votes"]
    assert [v["transactionHash"] for v in history] == [tx_hash]
    assert history[0]["election"]["title"] == "Board"

    verified = client.post('/receipts/verify', json={"receipt": receipt}).get_json()
    assert verified["transaction_hash"] == tx_hash
    assert verified["receipt_matches"] is True
    assert verified["content_matches"] is True

    lookup = client.get(f'/votes/{tx_hash}').get_json()
    assert lookup["candidate"] == "Alice"
    assert "voterId" not in lookup


def test_verify_rejects_garbage_receipt(client):
    assert client.post('/receipts/verify', json={"receipt": "garbage"}).status_code == 400
    assert client.post('/receipts/verify', json={}).status_code == 400


def test_vote_requires_token(client, election_id):
    """Voting without a token is a 401."""
    resp = client.post(f'/elections/{election_id}/vote', json={"candidate": "Alice"})
    assert resp.status_code == 401


def test_list_elections_by_status(client, clock, election_id):
    assert len(client.get('/elections?status=upcoming').get_json()["elections"]) == 1
    assert client.get('/elections?status=active').get_json()["elections"] == []
    assert client.get('/elections?status=bogus').status_code == 400


def test_delete_only_upcoming(client, clock, admin_token, election_id):
    clock.advance(hours=2)
    resp = client.delete(f'/elections/{election_id}', headers=bearer(admin_token))
    assert resp.status_code == 409


def test_delete_upcoming_election(client, admin_token, election_id):
    resp = client.delete(f'/elections/{election_id}', headers=bearer(admin_token))
    assert resp.status_code == 200
    assert client.get(f'/elections/{election_id}').status_code == 404


def test_admin_endpoints(client, admin_token, voter_token, election_id):
    """Admin views are refused to voters and summarize the store for admins."""
    assert client.get('/admin/dashboard', headers=bearer(voter_token)).status_code == 403
    assert client.get('/admin/users', headers=bearer(voter_token)).status_code == 403

    dashboard = client.get('/admin/dashboard', headers=bearer(admin_token)).get_json()
    assert dashboard["totalElections"] == 1
    assert dashboard["upcomingElections"] == 1
    assert dashboard["totalUsers"] == 2

    users = client.get('/admin/users?role=voter', headers=bearer(admin_token)).get_json()["users"]
    assert [(u["email"], u["voteCount"]) for u in users] == [("ada@example.com", 0)]


def test_unknown_vote_hash(client):
    assert client.get('/votes/0xdeadbeef').status_code == 404


def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json()["overall_ok"] is True
