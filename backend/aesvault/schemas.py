# Request/response shapes for the message endpoints
from dataclasses import dataclass
from typing import Optional

from .errors import ValidationError


def _require_text(payload, field, message):
    value = payload.get(field)
    if not isinstance(value, str) or value == '':
        raise ValidationError(message)
    return value


def _optional_record_id(payload):
    value = payload.get('recordId')
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise ValidationError('recordId must be an integer')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError('recordId must be an integer')


@dataclass(frozen=True)
class EncodeRequest:
    message: str

    @classmethod
    def from_json(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')
        return cls(message=_require_text(payload, 'message', 'Message is required'))


@dataclass(frozen=True)
class DecodeRequest:
    ciphertext: str
    record_id: Optional[int] = None

    @classmethod
    def from_json(cls, payload):
        if not isinstance(payload, dict):
            raise ValidationError('Request body must be a JSON object')
        return cls(
            ciphertext=_require_text(payload, 'ciphertext', 'Encrypted message is required'),
            record_id=_optional_record_id(payload),
        )


@dataclass(frozen=True)
class EncodeResult:
    ciphertext: str
    record_id: int

    def to_dict(self):
        return {'ciphertext': self.ciphertext, 'recordId': self.record_id}


@dataclass(frozen=True)
class DecodeResult:
    plaintext: str

    def to_dict(self):
        return {'plaintext': self.plaintext}
