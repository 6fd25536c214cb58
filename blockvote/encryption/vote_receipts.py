# blockvote/encryption/vote_receipts.py

# Content-addressed vote hashes and Ed25519-signed voter receipts.
# The transaction hash is the SHA-256 of the vote's canonical JSON, so it can
# be recomputed from the stored record at any time.

import base64
import binascii
import json
import hashlib
import logging
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives import serialization

from blockvote.errors import ValidationError

logger = logging.getLogger(__name__)

HASH_PREFIX = "0x"


def _canonical_vote(vote) -> bytes:
    content = {
        "id": vote.id,
        "election_id": vote.election_id,
        "voter_id": vote.voter_id,
        "candidate": vote.candidate,
        "timestamp": vote.timestamp.isoformat() if vote.timestamp else None,
    }
    return json.dumps(content, sort_keys=True, separators=(",", ":")).encode()


def compute_transaction_hash(vote) -> str:
    return HASH_PREFIX + hashlib.sha256(_canonical_vote(vote)).hexdigest()


def verify_transaction_hash(vote) -> bool:
    return vote.transaction_hash == compute_transaction_hash(vote)


def load_signing_key(private_key_pem: str) -> Ed25519PrivateKey:
    """Ed25519 private key from unencrypted PEM text."""
    key = serialization.load_pem_private_key(private_key_pem.encode(), password=None)
    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError("Signing key must be an Ed25519 private key")
    return key


class ReceiptService:
    def __init__(self, private_key_pem: str = None):
        if private_key_pem:
            self.private_key = load_signing_key(private_key_pem)
        else:
            logger.warning("RECEIPT_SIGNING_KEY not set; receipts issued now will not verify after a restart")
            self.private_key = Ed25519PrivateKey.generate()
        self.public_key = self.private_key.public_key()

    def get_public_key_pem(self) -> str:
        pem = self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo)
        return pem.decode()

    def create_receipt(self, vote) -> str:
        payload = {
            "vote_id": vote.id,
            "election_id": vote.election_id,
            "transaction_hash": vote.transaction_hash,
            "timestamp": vote.timestamp.isoformat() if vote.timestamp else None,
        }
        payload_json = json.dumps(payload, sort_keys=True).encode()
        payload["receipt_id"] = hashlib.sha256(payload_json).hexdigest()[:16]
        payload["signature"] = base64.b64encode(self.private_key.sign(payload_json)).decode()
        return base64.b64encode(json.dumps(payload).encode()).decode()

    def open_receipt(self, receipt: str) -> dict:
        """Decode a receipt and check its signature; returns the signed payload."""
        try:
            payload = json.loads(base64.b64decode(receipt, validate=True).decode())
            signature = base64.b64decode(payload.pop("signature"))
            payload.pop("receipt_id", None)
        except (binascii.Error, ValueError, KeyError, TypeError, AttributeError):
            raise ValidationError("Malformed receipt")

        payload_json = json.dumps(payload, sort_keys=True).encode()
        try:
            self.public_key.verify(signature, payload_json)
        except InvalidSignature:
            raise ValidationError("Receipt signature is invalid")
        return payload
