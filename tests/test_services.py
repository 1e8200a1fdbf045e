"""Handler tests against MemoryRecordStore, no Flask app involved."""

from __future__ import annotations

import threading

import pytest

from aesvault.errors import Forbidden, MalformedTokenError, NotFound, ValidationError
from aesvault.schemas import DecodeRequest, EncodeRequest
from aesvault.security import MessageCipher
from aesvault.services import decode_message, encode_message, message_history
from aesvault.store import MemoryRecordStore

from conftest import TEST_KEY

OWNER = 1
STRANGER = 2


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def cipher():
    return MessageCipher(TEST_KEY)


class TestEncode:
    def test_creates_owned_record(self, store, cipher):
        result = encode_message(store, cipher, OWNER, EncodeRequest(message="hello"))

        record = store.get_by_id(result.record_id)
        assert record.owner_id == OWNER
        assert record.plaintext == "hello"
        assert record.ciphertext == result.ciphertext
        assert record.last_decoded is None
        assert cipher.decode(result.ciphertext) == "hello"

    def test_each_encode_is_a_new_record(self, store, cipher):
        a = encode_message(store, cipher, OWNER, EncodeRequest(message="same"))
        b = encode_message(store, cipher, OWNER, EncodeRequest(message="same"))
        assert a.record_id != b.record_id
        assert a.ciphertext != b.ciphertext

    @pytest.mark.parametrize("payload", [{}, {"message": ""}, {"message": None}, {"message": 42}])
    def test_message_required(self, payload):
        with pytest.raises(ValidationError):
            EncodeRequest.from_json(payload)


class TestDecode:
    def test_without_record(self, store, cipher):
        token = cipher.encode("hello")
        result = decode_message(store, cipher, OWNER, DecodeRequest(ciphertext=token))
        assert result.plaintext == "hello"

    def test_owner_sets_last_decoded(self, store, cipher):
        encoded = encode_message(store, cipher, OWNER, EncodeRequest(message="hello"))

        result = decode_message(
            store, cipher, OWNER,
            DecodeRequest(ciphertext=encoded.ciphertext, record_id=encoded.record_id),
        )

        assert result.plaintext == "hello"
        assert store.get_by_id(encoded.record_id).last_decoded == "hello"

    def test_stranger_is_forbidden_and_record_unchanged(self, store, cipher):
        encoded = encode_message(store, cipher, OWNER, EncodeRequest(message="hello"))

        with pytest.raises(Forbidden):
            decode_message(
                store, cipher, STRANGER,
                DecodeRequest(ciphertext=encoded.ciphertext, record_id=encoded.record_id),
            )

        assert store.get_by_id(encoded.record_id).last_decoded is None

    def test_unknown_record(self, store, cipher):
        with pytest.raises(NotFound):
            decode_message(
                store, cipher, OWNER,
                DecodeRequest(ciphertext=cipher.encode("hello"), record_id=999),
            )

    def test_malformed_token_leaves_record_alone(self, store, cipher):
        encoded = encode_message(store, cipher, OWNER, EncodeRequest(message="hello"))

        with pytest.raises(MalformedTokenError):
            decode_message(
                store, cipher, OWNER,
                DecodeRequest(ciphertext="not-a-token", record_id=encoded.record_id),
            )

        assert store.get_by_id(encoded.record_id).last_decoded is None

    def test_last_decoded_tracks_latest_decode(self, store, cipher):
        encoded = encode_message(store, cipher, OWNER, EncodeRequest(message="first"))
        other = cipher.encode("second")

        decode_message(store, cipher, OWNER, DecodeRequest(ciphertext=other, record_id=encoded.record_id))

        record = store.get_by_id(encoded.record_id)
        assert record.last_decoded == "second"
        assert record.plaintext == "first"
        assert record.ciphertext == encoded.ciphertext


class TestDecodeRequest:
    def test_ciphertext_required(self):
        with pytest.raises(ValidationError):
            DecodeRequest.from_json({"recordId": 1})

    def test_record_id_optional(self):
        assert DecodeRequest.from_json({"ciphertext": "a:b"}).record_id is None
        assert DecodeRequest.from_json({"ciphertext": "a:b", "recordId": ""}).record_id is None

    def test_record_id_from_string(self):
        assert DecodeRequest.from_json({"ciphertext": "a:b", "recordId": "7"}).record_id == 7

    @pytest.mark.parametrize("record_id", ["abc", True, 1.5, [1]])
    def test_record_id_must_be_integer(self, record_id):
        with pytest.raises(ValidationError):
            DecodeRequest.from_json({"ciphertext": "a:b", "recordId": record_id})

    def test_body_must_be_object(self):
        with pytest.raises(ValidationError):
            DecodeRequest.from_json(["a:b"])


class TestHistory:
    def test_newest_first_capped_and_owner_only(self, store, cipher):
        for i in range(12):
            encode_message(store, cipher, OWNER, EncodeRequest(message=f"mine {i}"))
        for i in range(3):
            encode_message(store, cipher, STRANGER, EncodeRequest(message=f"theirs {i}"))

        records = message_history(store, OWNER)

        assert len(records) == 10
        assert all(r.owner_id == OWNER for r in records)
        assert [r.plaintext for r in records] == [f"mine {i}" for i in range(11, 1, -1)]
        created = [r.created_at for r in records]
        assert created == sorted(created, reverse=True)

    def test_custom_limit(self, store, cipher):
        for i in range(5):
            encode_message(store, cipher, OWNER, EncodeRequest(message=str(i)))
        assert len(message_history(store, OWNER, limit=3)) == 3

    def test_empty(self, store):
        assert message_history(store, OWNER) == []


class TestMemoryStoreConcurrency:
    def test_reads_while_writers_insert(self, store, cipher):
        errors = []

        def writer(owner_id):
            try:
                for i in range(200):
                    encode_message(store, cipher, owner_id, EncodeRequest(message=str(i)))
            except Exception as exc:
                errors.append(exc)

        def reader():
            try:
                for _ in range(200):
                    message_history(store, OWNER)
                    store.get_by_id(1)
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=writer, args=(owner,)) for owner in (OWNER, STRANGER)]
        threads += [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(message_history(store, OWNER, limit=1000)) == 200
        assert len(message_history(store, STRANGER, limit=1000)) == 200
