# blockvote/database/repository.py
"""Repository contract and the in-memory implementation.

Services talk to storage only through a Repository. Two implementations
exist: InMemoryRepository (tests, demos, STORAGE_BACKEND=memory) and
SqlAlchemyRepository in sql_repository.py.

Uniqueness rules live in the repository, not in callers:
- add_user raises EmailTakenError when the email is already registered.
- add_election raises DuplicateError when the id is already stored.
- add_vote_if_absent is a single atomic insert-if-absent on
  (voter_id, election_id) and raises AlreadyVotedError on conflict.

Records handed out are copies; mutating them does not change stored state.
"""

import threading

from blockvote.database.records import copy_record
from blockvote.errors import AlreadyVotedError, DuplicateError, EmailTakenError, StorageError


class Repository:
    # users
    def add_user(self, user):
        raise NotImplementedError

    def save_user(self, user):
        """Insert or replace a user by id."""
        raise NotImplementedError

    def get_user(self, user_id):
        raise NotImplementedError

    def get_user_by_email(self, email):
        raise NotImplementedError

    def list_users(self, role=None):
        raise NotImplementedError

    # elections
    def add_election(self, election):
        raise NotImplementedError

    def get_election(self, election_id):
        raise NotImplementedError

    def list_elections(self):
        raise NotImplementedError

    def delete_election(self, election_id):
        """Returns True when a record was removed."""
        raise NotImplementedError

    # votes
    def add_vote_if_absent(self, vote):
        raise NotImplementedError

    def get_vote(self, vote_id):
        raise NotImplementedError

    def get_vote_by_hash(self, transaction_hash):
        raise NotImplementedError

    def list_votes(self, election_id=None, voter_id=None):
        raise NotImplementedError

    def has_voted(self, voter_id, election_id):
        raise NotImplementedError

    def count_votes(self, election_id=None, voter_id=None):
        return len(self.list_votes(election_id=election_id, voter_id=voter_id))

    def clear(self):
        raise NotImplementedError


class InMemoryRepository(Repository):
    def __init__(self):
        self._lock = threading.Lock()
        self._users = {}
        self._elections = {}
        self._votes = []
        self._ballots = set()  # (voter_id, election_id)

    def add_user(self, user):
        email = user.email.lower()
        with self._lock:
            if any(u.email.lower() == email for u in self._users.values()):
                raise EmailTakenError()
            self._users[user.id] = copy_record(user)
        return copy_record(user)

    def save_user(self, user):
        email = user.email.lower()
        with self._lock:
            if any(u.email.lower() == email and u.id != user.id for u in self._users.values()):
                raise EmailTakenError()
            self._users[user.id] = copy_record(user)
        return copy_record(user)

    def get_user(self, user_id):
        user = self._users.get(user_id)
        return copy_record(user) if user else None

    def get_user_by_email(self, email):
        if not email:
            return None
        email = email.lower()
        for user in list(self._users.values()):
            if user.email.lower() == email:
                return copy_record(user)
        return None

    def list_users(self, role=None):
        users = [copy_record(u) for u in list(self._users.values()) if role is None or u.role == role]
        return _newest_first(users, 'created_at')

    def add_election(self, election):
        with self._lock:
            if election.id in self._elections:
                raise DuplicateError("Election already exists")
            self._elections[election.id] = copy_record(election)
        return copy_record(election)

    def get_election(self, election_id):
        election = self._elections.get(election_id)
        return copy_record(election) if election else None

    def list_elections(self):
        return _newest_first([copy_record(e) for e in list(self._elections.values())], 'created_at')

    def delete_election(self, election_id):
        with self._lock:
            return self._elections.pop(election_id, None) is not None

    def add_vote_if_absent(self, vote):
        key = (vote.voter_id, vote.election_id)
        with self._lock:
            if key in self._ballots:
                raise AlreadyVotedError()
            if vote.transaction_hash and any(v.transaction_hash == vote.transaction_hash for v in self._votes):
                raise StorageError("Transaction hash already recorded")
            self._ballots.add(key)
            self._votes.append(copy_record(vote))
        return copy_record(vote)

    def get_vote(self, vote_id):
        for vote in list(self._votes):
            if vote.id == vote_id:
                return copy_record(vote)
        return None

    def get_vote_by_hash(self, transaction_hash):
        for vote in list(self._votes):
            if vote.transaction_hash == transaction_hash:
                return copy_record(vote)
        return None

    def list_votes(self, election_id=None, voter_id=None):
        return [
            copy_record(v) for v in list(self._votes)
            if (election_id is None or v.election_id == election_id)
            and (voter_id is None or v.voter_id == voter_id)
        ]

    def has_voted(self, voter_id, election_id):
        return (voter_id, election_id) in self._ballots

    def clear(self):
        with self._lock:
            self._users.clear()
            self._elections.clear()
            self._votes.clear()
            self._ballots.clear()


def _newest_first(records, attribute):
    # records without a timestamp sort last
    return sorted(
        records,
        key=lambda r: (getattr(r, attribute) is not None, getattr(r, attribute) or 0),
        reverse=True,
    )
