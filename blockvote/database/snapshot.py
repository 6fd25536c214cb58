# blockvote/database/snapshot.py
"""Export and import of the whole store as one JSON document.

The document has four top-level keys, one per collection plus the
current-user pointer, with camelCase record shapes:

    {
      "voting_system_users": [{id, name, email, passwordHash, role, createdAt, walletAddress}],
      "voting_system_elections": [{id, title, description, candidates, startDate, endDate, createdBy, createdAt}],
      "voting_system_votes": [{id, electionId, voterId, candidate, timestamp, transactionHash}],
      "voting_system_current_user": <user id or null>
    }

There is no schema version; unknown keys are ignored.
"""

import json
import logging

from blockvote.database.records import User, Election, Vote
from blockvote.elections.status import parse_timestamp
from blockvote.encryption.vote_receipts import compute_transaction_hash
from blockvote.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

USERS_KEY = "voting_system_users"
ELECTIONS_KEY = "voting_system_elections"
VOTES_KEY = "voting_system_votes"
CURRENT_USER_KEY = "voting_system_current_user"


def export_state(repository, current_user_id=None) -> dict:
    users = []
    for user in repository.list_users():
        entry = user.to_public_dict()
        entry["passwordHash"] = user.password_hash
        users.append(entry)
    return {
        USERS_KEY: users,
        ELECTIONS_KEY: [e.to_dict() for e in repository.list_elections()],
        VOTES_KEY: [v.to_dict() for v in repository.list_votes()],
        CURRENT_USER_KEY: current_user_id,
    }


def import_state(repository, document) -> dict:
    """
    Load every record of a snapshot into the repository; returns per-collection counts.

    Nothing is written when any record is malformed or collides with another
    record in the snapshot or in the repository.
    """
    if not isinstance(document, dict):
        raise StorageError("Snapshot must be a JSON object")
    try:
        users = [_user_from_dict(item) for item in document.get(USERS_KEY, [])]
        elections = [_election_from_dict(item) for item in document.get(ELECTIONS_KEY, [])]
        votes = [_vote_from_dict(item) for item in document.get(VOTES_KEY, [])]
    except (KeyError, TypeError, AttributeError, ValidationError) as e:
        logger.error("Rejected malformed snapshot: %s", e)
        raise StorageError(f"Malformed snapshot: {e}")

    conflict = _first_conflict(repository, users, elections, votes)
    if conflict:
        logger.error("Rejected snapshot: %s", conflict)
        raise StorageError(f"Snapshot conflicts with stored data: {conflict}")

    for user in users:
        repository.add_user(user)
    for election in elections:
        repository.add_election(election)
    for vote in votes:
        repository.add_vote_if_absent(vote)
    return {"users": len(users), "elections": len(elections), "votes": len(votes)}


def _first_conflict(repository, users, elections, votes):
    """Describe the first record that cannot be written, or return None.

    Checked against the snapshot itself and the repository, so an import
    either writes every record or none.
    """
    seen = set()
    for user in users:
        keys = [("user", user.id), ("email", user.email.lower())]
        if any(key in seen for key in keys):
            return f"duplicate user {user.id}"
        seen.update(keys)
        if repository.get_user(user.id) is not None:
            return f"user {user.id} already exists"
        if repository.get_user_by_email(user.email) is not None:
            return f"email {user.email} is already registered"

    for election in elections:
        if ("election", election.id) in seen:
            return f"duplicate election {election.id}"
        seen.add(("election", election.id))
        if repository.get_election(election.id) is not None:
            return f"election {election.id} already exists"

    for vote in votes:
        keys = [("vote", vote.id), ("ballot", vote.voter_id, vote.election_id), ("hash", vote.transaction_hash)]
        if any(key in seen for key in keys):
            return f"duplicate vote {vote.id}"
        seen.update(keys)
        if repository.get_vote(vote.id) is not None:
            return f"vote {vote.id} already exists"
        if repository.has_voted(vote.voter_id, vote.election_id):
            return f"voter {vote.voter_id} already voted in election {vote.election_id}"
        if repository.get_vote_by_hash(vote.transaction_hash) is not None:
            return f"transaction hash {vote.transaction_hash} already exists"
    return None


def dump_state(repository, path, current_user_id=None):
    with open(path, "w", encoding="utf-8") as f:
        json.dump(export_state(repository, current_user_id), f, indent=2)


def load_state(repository, path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except ValueError as e:
        raise StorageError(f"Snapshot is not valid JSON: {e}")
    return import_state(repository, document)


def _optional_timestamp(value):
    return parse_timestamp(value) if value else None


def _user_from_dict(data):
    return User(
        id=data["id"],
        name=data["name"],
        email=data["email"].lower(),
        password_hash=data["passwordHash"],
        role=data.get("role", "voter"),
        created_at=_optional_timestamp(data.get("createdAt")),
        wallet_address=data.get("walletAddress"),
    )


def _election_from_dict(data):
    return Election(
        id=data["id"],
        title=data["title"],
        description=data.get("description", ""),
        candidates=list(data["candidates"]),
        start_date=parse_timestamp(data["startDate"]),
        end_date=parse_timestamp(data["endDate"]),
        created_by=data.get("createdBy"),
        created_at=_optional_timestamp(data.get("createdAt")),
    )


def _vote_from_dict(data):
    vote = Vote(
        id=data["id"],
        election_id=data["electionId"],
        voter_id=data["voterId"],
        candidate=data["candidate"],
        timestamp=_optional_timestamp(data.get("timestamp")),
    )
    # older snapshots may not carry the hash; it is derived from the vote itself
    vote.transaction_hash = data.get("transactionHash") or compute_transaction_hash(vote)
    return vote
