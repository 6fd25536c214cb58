# blockvote/database/sql_repository.py

import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from blockvote import db
from blockvote.database.models import User, Election, Vote
from blockvote.database.repository import Repository
from blockvote.errors import AlreadyVotedError, DuplicateError, EmailTakenError, StorageError

logger = logging.getLogger(__name__)


class SqlAlchemyRepository(Repository):
    """Repository backed by Flask-SQLAlchemy; needs an application context."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def _commit(self, conflict=None):
        """
        Commit the session.

        `conflict` is called after an IntegrityError has been rolled back and
        returns the domain error to raise when stored data confirms a
        duplicate, or None. Any other integrity failure (foreign key, a
        different unique column) is a StorageError.
        """
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            error = conflict() if conflict is not None else None
            if error is not None:
                raise error
            logger.error("Integrity error on commit: %s", e)
            raise StorageError()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Database commit failed: %s", e)
            raise StorageError()

    def _query(self, func):
        try:
            return func()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Database read failed: %s", e)
            raise StorageError()

    # users

    def add_user(self, user):
        self.session.add(User(
            id=user.id,
            name=user.name,
            email=user.email.lower(),
            password_hash=user.password_hash,
            role=user.role,
            created_at=user.created_at,
            wallet_address=user.wallet_address,
        ))
        self._commit(lambda: self._email_conflict(user))
        return self.get_user(user.id)

    def save_user(self, user):
        row = self._query(lambda: self.session.get(User, user.id))
        if row is None:
            return self.add_user(user)
        row.name = user.name
        row.email = user.email.lower()
        row.password_hash = user.password_hash
        row.role = user.role
        row.wallet_address = user.wallet_address
        self._commit(lambda: self._email_conflict(user))
        return row.to_record()

    def _email_conflict(self, user):
        owner = self.get_user_by_email(user.email)
        if owner is not None and owner.id != user.id:
            return EmailTakenError()
        return None

    def get_user(self, user_id):
        row = self._query(lambda: self.session.get(User, user_id))
        return row.to_record() if row else None

    def get_user_by_email(self, email):
        if not email:
            return None
        row = self._query(lambda: self.session.query(User).filter_by(email=email.lower()).first())
        return row.to_record() if row else None

    def list_users(self, role=None):
        def run():
            query = self.session.query(User)
            if role is not None:
                query = query.filter_by(role=role)
            return query.order_by(User.created_at.desc()).all()
        return [row.to_record() for row in self._query(run)]

    # elections

    def add_election(self, election):
        self.session.add(Election(
            id=election.id,
            title=election.title,
            description=election.description,
            candidates=list(election.candidates),
            start_date=election.start_date,
            end_date=election.end_date,
            created_by=election.created_by,
            created_at=election.created_at,
        ))
        self._commit(
            lambda: DuplicateError("Election already exists") if self.get_election(election.id) else None
        )
        return self.get_election(election.id)

    def get_election(self, election_id):
        row = self._query(lambda: self.session.get(Election, election_id))
        return row.to_record() if row else None

    def list_elections(self):
        rows = self._query(lambda: self.session.query(Election).order_by(Election.created_at.desc()).all())
        return [row.to_record() for row in rows]

    def delete_election(self, election_id):
        row = self._query(lambda: self.session.get(Election, election_id))
        if row is None:
            return False
        self.session.delete(row)
        self._commit()
        return True

    # votes

    def add_vote_if_absent(self, vote):
        # the unique constraint makes check-and-insert a single statement; a
        # failed insert is only a duplicate vote if that ballot now exists
        self.session.add(Vote(
            id=vote.id,
            election_id=vote.election_id,
            voter_id=vote.voter_id,
            candidate=vote.candidate,
            timestamp=vote.timestamp,
            transaction_hash=vote.transaction_hash,
        ))
        self._commit(
            lambda: AlreadyVotedError() if self.has_voted(vote.voter_id, vote.election_id) else None
        )
        return self.get_vote(vote.id)

    def get_vote(self, vote_id):
        row = self._query(lambda: self.session.get(Vote, vote_id))
        return row.to_record() if row else None

    def get_vote_by_hash(self, transaction_hash):
        row = self._query(lambda: self.session.query(Vote).filter_by(transaction_hash=transaction_hash).first())
        return row.to_record() if row else None

    def _vote_query(self, election_id, voter_id):
        query = self.session.query(Vote)
        if election_id is not None:
            query = query.filter_by(election_id=election_id)
        if voter_id is not None:
            query = query.filter_by(voter_id=voter_id)
        return query

    def list_votes(self, election_id=None, voter_id=None):
        rows = self._query(lambda: self._vote_query(election_id, voter_id).order_by(Vote.timestamp).all())
        return [row.to_record() for row in rows]

    def count_votes(self, election_id=None, voter_id=None):
        return self._query(lambda: self._vote_query(election_id, voter_id).count())

    def has_voted(self, voter_id, election_id):
        return self._query(
            lambda: self._vote_query(election_id, voter_id).first() is not None
        )

    def clear(self):
        try:
            self.session.query(Vote).delete()
            self.session.query(Election).delete()
            self.session.query(User).delete()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Clearing tables failed: %s", e)
            raise StorageError()
        self._commit()
