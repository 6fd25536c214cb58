# blockvote/security/input_validator.py

import re
import bleach

from blockvote.errors import ValidationError

# Input sanitization and validation for user-supplied text and form payloads


class InputValidator:
    def __init__(self):
        self.patterns = {
            'email': re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'),
            'xss_script': re.compile(r'<script[^>]*>.*?</script>', re.IGNORECASE | re.DOTALL),
            'xss_event': re.compile(r'\bon\w+\s*=', re.IGNORECASE),
        }

    def sanitize_string(self, input_str, max_length=255):
        if not isinstance(input_str, str):
            raise ValidationError("Input must be a string")
        if len(input_str) > max_length:
            input_str = input_str[:max_length]

        sanitized = re.sub(self.patterns['xss_script'], '', input_str)
        sanitized = re.sub(self.patterns['xss_event'], '', sanitized)
        # strip every tag; entities stay escaped
        sanitized = bleach.clean(sanitized, tags=[], attributes={}, strip=True)
        return sanitized.strip()

    def validate_email(self, email):
        return isinstance(email, str) and bool(self.patterns['email'].match(email.strip()))

    def normalize_email(self, email):
        if not self.validate_email(email):
            raise ValidationError("A valid email address is required")
        return email.strip().lower()

    def require_text(self, value, field_name, max_length=255):
        """Sanitized, non-blank text or ValidationError naming the field."""
        if value is None:
            raise ValidationError(f"{field_name} is required")
        cleaned = self.sanitize_string(value, max_length=max_length)
        if not cleaned:
            raise ValidationError(f"{field_name} is required")
        return cleaned

    def clean_candidates(self, candidates, minimum=2, max_length=100):
        """Drop blank entries, sanitize the rest and reject duplicates."""
        if not isinstance(candidates, (list, tuple)):
            raise ValidationError("Candidates must be a list")

        cleaned = []
        for candidate in candidates:
            if not isinstance(candidate, str):
                raise ValidationError("Candidate names must be strings")
            name = self.sanitize_string(candidate, max_length=max_length)
            if name:
                cleaned.append(name)

        if len(cleaned) < minimum:
            raise ValidationError(f"At least {minimum} candidates are required")
        lowered = [name.lower() for name in cleaned]
        if len(set(lowered)) != len(lowered):
            raise ValidationError("Candidate names must be unique")
        return cleaned
