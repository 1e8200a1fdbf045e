# Encode / decode / history handlers. Framework free: routes pass in the store and cipher.
import logging

from .errors import Forbidden, NotFound
from .schemas import DecodeRequest, DecodeResult, EncodeRequest, EncodeResult
from .store import MessageRecord

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


def encode_message(store, cipher, owner_id, request: EncodeRequest) -> EncodeResult:
    ciphertext = cipher.encode(request.message)
    record = store.create(MessageRecord(
        owner_id=owner_id,
        plaintext=request.message,
        ciphertext=ciphertext,
    ))
    logger.info(f'Created message record {record.id} for user {owner_id}')
    return EncodeResult(ciphertext=ciphertext, record_id=record.id)


def decode_message(store, cipher, caller_id, request: DecodeRequest) -> DecodeResult:
    """Decrypt a token and, when a record is referenced, annotate it.

    The token is decoded before the record is touched, so a malformed token
    never modifies anything. Only the record's owner may annotate it.
    """
    plaintext = cipher.decode(request.ciphertext)

    if request.record_id is not None:
        record = store.get_by_id(request.record_id)
        if record is None:
            raise NotFound(f'Message {request.record_id} not found')
        if record.owner_id != caller_id:
            logger.warning(f'User {caller_id} tried to update message {record.id} owned by {record.owner_id}')
            raise Forbidden()
        record.last_decoded = plaintext
        store.update(record)
        logger.info(f'Updated last decoded value of message record {record.id}')

    return DecodeResult(plaintext=plaintext)


def message_history(store, caller_id, limit=DEFAULT_HISTORY_LIMIT):
    return store.list_by_owner(caller_id, limit)
