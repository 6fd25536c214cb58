# blockvote/voting/vote_service.py

import hashlib
import logging
import uuid
from datetime import datetime

from blockvote.database.records import Vote
from blockvote.elections.status import ElectionStatus, election_status, utcnow
from blockvote.encryption.vote_receipts import ReceiptService, compute_transaction_hash, verify_transaction_hash
from blockvote.errors import AlreadyVotedError, ElectionStateError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class VoteService:
    def __init__(self, repository, receipt_service=None, audit_logger=None, clock=utcnow):
        self.repository = repository
        self.receipt_service = receipt_service or ReceiptService()
        self.audit_logger = audit_logger
        self.clock = clock

    def _audit(self, event_type, data):
        if self.audit_logger is not None:
            self.audit_logger.log_event(event_type, data)

    @staticmethod
    def _hash_voter_id(voter_id):
        # audit entries never carry the raw voter id
        return hashlib.sha256(str(voter_id).encode()).hexdigest()[:16]

    def has_voted(self, voter_id, election_id):
        return self.repository.has_voted(voter_id, election_id)

    def cast_vote(self, voter_id, election_id, candidate):
        """
        Record one vote and return (vote, receipt).

        Raises NotFoundError for an unknown election, ElectionStateError when
        the election is not active, ValidationError for a candidate that is
        not on the ballot and AlreadyVotedError when the voter already voted.
        """
        election = self.repository.get_election(election_id)
        if election is None:
            raise NotFoundError("Election not found")

        now = self.clock()
        if election_status(election, now) is not ElectionStatus.ACTIVE:
            raise ElectionStateError("Election is not active")
        if not isinstance(candidate, str) or candidate not in election.candidates:
            raise ValidationError("Please select a valid candidate")

        vote = Vote(
            id=uuid.uuid4().hex,
            election_id=election_id,
            voter_id=voter_id,
            candidate=candidate,
            timestamp=now,
        )
        vote.transaction_hash = compute_transaction_hash(vote)

        try:
            vote = self.repository.add_vote_if_absent(vote)
        except AlreadyVotedError:
            self._audit('duplicate_vote_attempt', {'election_id': election_id, 'voter': self._hash_voter_id(voter_id)})
            raise

        logger.info("Vote %s recorded for election %s", vote.id, election_id)
        self._audit('vote_cast', {
            'vote_id': vote.id,
            'election_id': election_id,
            'voter': self._hash_voter_id(voter_id),
            'transaction_hash': vote.transaction_hash,
        })
        return vote, self.receipt_service.create_receipt(vote)

    def votes_for_voter(self, voter_id):
        """Voter's history as (vote, election) pairs, newest first; deleted elections skipped."""
        history = []
        for vote in self.repository.list_votes(voter_id=voter_id):
            election = self.repository.get_election(vote.election_id)
            if election is not None:
                history.append((vote, election))
        # imported votes may lack a timestamp; those sort last
        history.sort(key=lambda pair: pair[0].timestamp or datetime.min, reverse=True)
        return history

    def find_vote(self, transaction_hash):
        vote = self.repository.get_vote_by_hash(transaction_hash)
        if vote is None:
            raise NotFoundError("No vote with this transaction hash")
        return vote

    def verify_receipt(self, receipt):
        """Check a receipt's signature and that it still matches a stored, unaltered vote."""
        payload = self.receipt_service.open_receipt(receipt)
        vote = self.repository.get_vote(payload.get("vote_id"))
        if vote is None:
            raise NotFoundError("Vote referenced by the receipt does not exist")
        return {
            "vote_id": vote.id,
            "election_id": vote.election_id,
            "transaction_hash": vote.transaction_hash,
            "receipt_matches": payload.get("transaction_hash") == vote.transaction_hash,
            "content_matches": verify_transaction_hash(vote),
        }
