# blockvote/audit/audit_logger.py

import os
import json
import hashlib
import base64
import logging
from datetime import datetime, timezone
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

logger = logging.getLogger(__name__)

# Append-only audit trail of election and voting events.
# Each JSON line carries the hash of the previous line and an Ed25519 signature.


class AuditLogger:
    def __init__(self, log_dir='logs', file_name='audit.log', signing_key=None):
        self.log_dir = log_dir
        self.log_file = os.path.join(log_dir, file_name)
        self.previous_hash = None

        os.makedirs(log_dir, exist_ok=True)

        if signing_key is None:
            logger.warning("No audit signing key configured; entries written now will not verify after a restart")
            signing_key = Ed25519PrivateKey.generate()
        self.signing_key = signing_key
        self._load_previous_hash()

    def _load_previous_hash(self):
        if not os.path.exists(self.log_file):
            return
        with open(self.log_file, 'r') as f:
            lines = [line for line in f if line.strip()]
        if lines:
            try:
                self.previous_hash = json.loads(lines[-1]).get('hash')
            except ValueError:
                logger.warning("Last audit entry in %s is not valid JSON", self.log_file)
                self.previous_hash = None

    def log_event(self, event_type, data, user_id=None):
        """Append an event; write failures are logged, never raised to the caller."""
        try:
            log_entry = {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "event_type": event_type,
                "data": data,
                "user_id": user_id,
                "previous_hash": self.previous_hash,
            }
            entry_json = json.dumps(log_entry, sort_keys=True)
            entry_hash = hashlib.sha256(entry_json.encode()).hexdigest()
            log_entry['hash'] = entry_hash
            log_entry['signature'] = base64.b64encode(self.signing_key.sign(entry_json.encode())).decode()

            with open(self.log_file, 'a') as f:
                f.write(json.dumps(log_entry) + "\n")

            self.previous_hash = entry_hash
        except (OSError, TypeError, ValueError) as e:
            logger.error("Audit log write failed for %s: %s", event_type, e)

    def read_entries(self):
        if not os.path.exists(self.log_file):
            return []
        with open(self.log_file, 'r') as f:
            return [json.loads(line) for line in f if line.strip()]

    def verify_log_integrity(self):
        try:
            entries = self.read_entries()
        except ValueError:
            return False

        public_key = self.signing_key.public_key()
        previous_hash = None
        for log_entry in entries:
            try:
                if log_entry.get('previous_hash') != previous_hash:
                    return False
                signature = base64.b64decode(log_entry['signature'])
                entry_copy = dict(log_entry)
                entry_copy.pop('signature')
                entry_hash = entry_copy.pop('hash')
                entry_json = json.dumps(entry_copy, sort_keys=True).encode()
                if hashlib.sha256(entry_json).hexdigest() != entry_hash:
                    return False
                public_key.verify(signature, entry_json)
            except (KeyError, ValueError, InvalidSignature):
                return False
            previous_hash = entry_hash
        return True
