# blockvote/database/records.py

# Storage-independent records passed between repositories and services

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import List, Optional


class UserRole(Enum):
    VOTER = "voter"
    ADMIN = "admin"


@dataclass
class User:
    id: str
    name: str
    email: str
    password_hash: str
    role: str = UserRole.VOTER.value
    created_at: Optional[datetime] = None
    wallet_address: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    def to_public_dict(self) -> dict:
        # password hash never leaves the service layer
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "createdAt": _iso(self.created_at),
            "walletAddress": self.wallet_address,
        }


@dataclass
class Election:
    id: str
    title: str
    description: str
    candidates: List[str] = field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "candidates": list(self.candidates),
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "createdBy": self.created_by,
            "createdAt": _iso(self.created_at),
        }


@dataclass
class Vote:
    id: str
    election_id: str
    voter_id: str
    candidate: str
    timestamp: Optional[datetime] = None
    transaction_hash: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "electionId": self.election_id,
            "voterId": self.voter_id,
            "candidate": self.candidate,
            "timestamp": _iso(self.timestamp),
            "transactionHash": self.transaction_hash,
        }


def copy_record(record):
    """Detached copy so callers cannot mutate what a repository holds."""
    return type(record)(**asdict(record))


def _iso(value):
    return value.isoformat() if value else None
