import json
import pytest
from datetime import datetime, timedelta

from blockvote.database.records import User, Election, Vote
from blockvote.database.repository import InMemoryRepository
from blockvote.database.snapshot import (
    CURRENT_USER_KEY, ELECTIONS_KEY, USERS_KEY, VOTES_KEY,
    dump_state, export_state, import_state, load_state,
)
from blockvote.errors import StorageError

NOW = datetime(2025, 10, 23, 12, 0, 0)


@pytest.fixture
def populated():
    repo = InMemoryRepository()
    repo.add_user(User(id="u1", name="Ada", email="ada@example.com", password_hash="h1", created_at=NOW))
    repo.add_election(Election(
        id="e1",
        title="Board",
        description="",
        candidates=["Alice", "Bob"],
        start_date=NOW,
        end_date=NOW + timedelta(days=1),
        created_by="u1",
        created_at=NOW,
    ))
    repo.add_vote_if_absent(Vote(
        id="v1", election_id="e1", voter_id="u1", candidate="Bob", timestamp=NOW, transaction_hash="0xabc",
    ))
    return repo


def test_export_layout(populated):
    """The export uses the four storage keys and camelCase records."""
    document = export_state(populated, current_user_id="u1")

    assert set(document) == {USERS_KEY, ELECTIONS_KEY, VOTES_KEY, CURRENT_USER_KEY}
    assert document[USERS_KEY][0]["passwordHash"] == "h1"
    assert document[ELECTIONS_KEY][0]["startDate"] == "2025-10-23T12:00:00"
    assert document[VOTES_KEY][0]["transactionHash"] == "0xabc"
    assert document[CURRENT_USER_KEY] == "u1"


def test_round_trip_through_file(populated, tmp_path):
    path = str(tmp_path / "state.json")
    dump_state(populated, path)

    fresh = InMemoryRepository()
    counts = load_state(fresh, path)

    assert counts == {"users": 1, "elections": 1, "votes": 1}
    assert fresh.get_user("u1").password_hash == "h1"
    assert fresh.get_election("e1").end_date == NOW + timedelta(days=1)
    assert fresh.has_voted("u1", "e1")


def test_missing_collections_are_empty():
    assert import_state(InMemoryRepository(), {}) == {"users": 0, "elections": 0, "votes": 0}


@pytest.mark.parametrize("document", [
    [],
    {USERS_KEY: [{"id": "u1"}]},
    {ELECTIONS_KEY: [{"id": "e1", "title": "t", "candidates": [], "startDate": "soon", "endDate": "later"}]},
    {VOTES_KEY: ["not a vote"]},
])
def test_malformed_snapshot_is_rejected(document):
    """Malformed documents raise StorageError and write nothing."""
    repo = InMemoryRepository()
    with pytest.raises(StorageError):
        import_state(repo, document)
    assert repo.list_users() == []


def test_invalid_json_file(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(StorageError):
        load_state(InMemoryRepository(), str(path))


def test_export_is_json_serializable(populated):
    json.dumps(export_state(populated))


def test_import_into_populated_store_changes_nothing(populated):
    """A snapshot that collides with stored data is rejected before any write."""
    document = export_state(populated)
    document[USERS_KEY].append({
        "id": "u2", "name": "Grace", "email": "grace@example.com", "passwordHash": "h2",
    })

    with pytest.raises(StorageError, match="already exists"):
        import_state(populated, document)
    assert [u.id for u in populated.list_users()] == ["u1"]
    assert len(populated.list_votes()) == 1


def test_conflicts_inside_the_snapshot_are_rejected():
    """Two ballots from one voter in the same election never half-apply."""
    vote = {"id": "v1", "electionId": "e1", "voterId": "u1", "candidate": "A", "timestamp": "2025-10-23T12:00:00"}
    document = {
        USERS_KEY: [{"id": "u9", "name": "Lin", "email": "lin@example.com", "passwordHash": "h"}],
        VOTES_KEY: [vote, dict(vote, id="v2", candidate="B")],
    }
    repo = InMemoryRepository()
    with pytest.raises(StorageError, match="duplicate vote"):
        import_state(repo, document)
    assert repo.list_users() == []


def test_vote_without_hash_gets_one_derived():
    document = {VOTES_KEY: [{"id": "v1", "electionId": "e1", "voterId": "u1", "candidate": "A"}]}
    repo = InMemoryRepository()
    import_state(repo, document)
    assert repo.get_vote("v1").transaction_hash.startswith("0x")
