# blockvote/database/models.py

from blockvote import db
from blockvote.database import records
from blockvote.elections.status import utcnow

# Relational schema; the unique constraints back the repository's
# duplicate-email and one-vote-per-election guarantees


class User(db.Model):
    __tablename__ = 'users'
    id = db.Column(db.String(36), primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), unique=True, nullable=False)
    password_hash = db.Column(db.String(200), nullable=False)  # Argon2id
    role = db.Column(db.String(20), nullable=False, default='voter')
    created_at = db.Column(db.DateTime, default=utcnow)
    wallet_address = db.Column(db.String(64), nullable=True)

    votes = db.relationship('Vote', backref='voter', lazy=True)

    def to_record(self):
        return records.User(
            id=self.id,
            name=self.name,
            email=self.email,
            password_hash=self.password_hash,
            role=self.role,
            created_at=self.created_at,
            wallet_address=self.wallet_address,
        )


class Election(db.Model):
    __tablename__ = 'elections'
    id = db.Column(db.String(36), primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    candidates = db.Column(db.JSON, nullable=False)  # ordered list of names
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint('end_date > start_date', name='election_window_order'),
    )

    def to_record(self):
        return records.Election(
            id=self.id,
            title=self.title,
            description=self.description,
            candidates=list(self.candidates or []),
            start_date=self.start_date,
            end_date=self.end_date,
            created_by=self.created_by,
            created_at=self.created_at,
        )


class Vote(db.Model):
    __tablename__ = 'votes'
    id = db.Column(db.String(36), primary_key=True)
    # no foreign key: votes outlive a deleted election
    election_id = db.Column(db.String(36), nullable=False, index=True)
    voter_id = db.Column(db.String(36), db.ForeignKey('users.id'), nullable=False, index=True)
    candidate = db.Column(db.String(100), nullable=False)
    timestamp = db.Column(db.DateTime, default=utcnow)
    transaction_hash = db.Column(db.String(66), unique=True, nullable=False)

    __table_args__ = (
        db.UniqueConstraint('voter_id', 'election_id', name='unique_vote_per_election'),
    )

    def to_record(self):
        return records.Vote(
            id=self.id,
            election_id=self.election_id,
            voter_id=self.voter_id,
            candidate=self.candidate,
            timestamp=self.timestamp,
            transaction_hash=self.transaction_hash,
        )

    def __repr__(self):
        return f'<Vote {self.id} by User {self.voter_id}>'
