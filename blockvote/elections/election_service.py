# blockvote/elections/election_service.py

import logging
import uuid

from blockvote.database.records import Election
from blockvote.elections.status import ElectionStatus, election_status, parse_timestamp, utcnow
from blockvote.elections.tally import tally_votes, determine_winner
from blockvote.errors import ElectionStateError, NotFoundError, ValidationError
from blockvote.security.input_validator import InputValidator

logger = logging.getLogger(__name__)


class ElectionService:
    def __init__(self, repository, validator=None, audit_logger=None, clock=utcnow):
        self.repository = repository
        self.validator = validator or InputValidator()
        self.audit_logger = audit_logger
        self.clock = clock

    def _audit(self, event_type, data, user_id=None):
        if self.audit_logger is not None:
            self.audit_logger.log_event(event_type, data, user_id=user_id)

    def create_election(self, title, description, candidates, start_date, end_date, created_by):
        title = self.validator.require_text(title, "Election title", max_length=200)
        description = self.validator.require_text(description, "Election description", max_length=2000)
        candidates = self.validator.clean_candidates(candidates)

        if not start_date or not end_date:
            raise ValidationError("Start and end dates are required")
        start = parse_timestamp(start_date)
        end = parse_timestamp(end_date)
        now = self.clock()
        if start < now:
            raise ValidationError("Start date cannot be in the past")
        if end <= start:
            raise ValidationError("End date must be after start date")

        election = Election(
            id=uuid.uuid4().hex,
            title=title,
            description=description,
            candidates=candidates,
            start_date=start,
            end_date=end,
            created_by=created_by,
            created_at=now,
        )
        election = self.repository.add_election(election)
        logger.info("Election %s created by %s", election.id, created_by)
        self._audit('election_created', {'election_id': election.id, 'title': election.title}, user_id=created_by)
        return election

    def get_election(self, election_id):
        election = self.repository.get_election(election_id)
        if election is None:
            raise NotFoundError("Election not found")
        return election

    def status_of(self, election):
        return election_status(election, self.clock())

    def list_elections(self, status=None):
        if status is not None and not isinstance(status, ElectionStatus):
            try:
                status = ElectionStatus(status)
            except ValueError:
                raise ValidationError(f"Unknown election status: {status}")
        elections = self.repository.list_elections()
        if status is None:
            return elections
        now = self.clock()
        return [e for e in elections if election_status(e, now) is status]

    def delete_election(self, election_id, actor_id=None):
        election = self.get_election(election_id)
        if self.status_of(election) is not ElectionStatus.UPCOMING:
            raise ElectionStateError("Only upcoming elections can be deleted")
        self.repository.delete_election(election_id)
        logger.info("Election %s deleted by %s", election_id, actor_id)
        self._audit('election_deleted', {'election_id': election_id}, user_id=actor_id)

    def get_results(self, election_id, now=None):
        """Tally, status and winner for one election."""
        election = self.get_election(election_id)
        status = election_status(election, now if now is not None else self.clock())
        results = tally_votes(
            election.candidates,
            self.repository.list_votes(election_id=election_id),
            election_id=election_id,
        )
        return {
            "election": election,
            "status": status,
            "results": results,
            "winner": determine_winner(results, status),
        }

    def dashboard_summary(self):
        now = self.clock()
        elections = self.repository.list_elections()
        by_status = {status.value: 0 for status in ElectionStatus}
        for election in elections:
            by_status[election_status(election, now).value] += 1
        return {
            "totalElections": len(elections),
            "activeElections": by_status[ElectionStatus.ACTIVE.value],
            "upcomingElections": by_status[ElectionStatus.UPCOMING.value],
            "completedElections": by_status[ElectionStatus.COMPLETED.value],
            "totalVotes": self.repository.count_votes(),
            "totalUsers": len(self.repository.list_users()),
        }
