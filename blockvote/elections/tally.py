# blockvote/elections/tally.py

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from blockvote.elections.status import ElectionStatus, utcnow

logger = logging.getLogger(__name__)


@dataclass
class CandidateResult:
    candidate: str
    votes: int
    percentage: float
    rank: int

    def to_dict(self):
        return {
            "candidate": self.candidate,
            "votes": self.votes,
            "percentage": self.percentage,
            "rank": self.rank,
        }


@dataclass
class ElectionResults:
    election_id: Optional[str]
    total_votes: int
    results: List[CandidateResult] = field(default_factory=list)
    last_updated: Optional[datetime] = None

    @property
    def is_tie(self) -> bool:
        """True when more than one candidate shares first place with votes."""
        leaders = [r for r in self.results if r.rank == 1]
        return self.total_votes > 0 and len(leaders) > 1

    def to_dict(self):
        return {
            "electionId": self.election_id,
            "totalVotes": self.total_votes,
            "results": [r.to_dict() for r in self.results],
            "isTie": self.is_tie,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
        }


def tally_votes(candidates: List[str], votes: Iterable, election_id: str = None) -> ElectionResults:
    """
    Count votes per candidate and rank them by count, descending.

    Ties keep the candidates' declaration order and share a rank
    (competition ranking, e.g. 1, 1, 3). Votes naming a candidate that is
    not on the ballot are not counted.
    """
    counts = {name: 0 for name in candidates}
    ignored = 0
    for vote in votes:
        if vote.candidate in counts:
            counts[vote.candidate] += 1
        else:
            ignored += 1
    if ignored:
        logger.warning("Ignored %d vote(s) for unknown candidates in election %s", ignored, election_id)

    total = sum(counts.values())
    order = {name: index for index, name in enumerate(candidates)}
    ranked = sorted(counts.items(), key=lambda item: (-item[1], order[item[0]]))

    results = []
    previous_count = None
    rank = 0
    for position, (name, count) in enumerate(ranked, start=1):
        if count != previous_count:
            rank = position
            previous_count = count
        percentage = round(count / total * 100, 1) if total > 0 else 0.0
        results.append(CandidateResult(candidate=name, votes=count, percentage=percentage, rank=rank))

    return ElectionResults(
        election_id=election_id,
        total_votes=total,
        results=results,
        last_updated=utcnow(),
    )


def determine_winner(results: ElectionResults, status: ElectionStatus) -> Optional[str]:
    """The sole rank-1 candidate of a completed election with votes, else None."""
    if status is not ElectionStatus.COMPLETED or results.total_votes == 0:
        return None
    if results.is_tie:
        return None
    return results.results[0].candidate
