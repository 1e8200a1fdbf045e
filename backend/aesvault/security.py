# Message encryption: AES-256-CBC tokens of the form hex(iv):hex(ciphertext)

import binascii
from dataclasses import dataclass
from Crypto.Cipher import AES
from Crypto.Random import get_random_bytes
from Crypto.Util.Padding import pad, unpad
import logging

from .errors import ConfigurationError, MalformedTokenError

KEY_LENGTH = 32
IV_LENGTH = 16
SEPARATOR = ':'

# --- Key handling ---

def load_encryption_key(value) -> bytes:
    """Turn the configured ENCRYPTION_KEY into 32 key bytes.
    Strings are taken as UTF-8, so a 32 character ASCII secret is a valid key.
    """
    if value is None or value == '' or value == b'':
        raise ConfigurationError('ENCRYPTION_KEY is not defined')
    if isinstance(value, str):
        key = value.encode('utf-8')
    elif isinstance(value, (bytes, bytearray)):
        key = bytes(value)
    else:
        raise ConfigurationError('ENCRYPTION_KEY must be a string or bytes')
    if len(key) != KEY_LENGTH:
        raise ConfigurationError(
            f'ENCRYPTION_KEY must be exactly {KEY_LENGTH} bytes. Current length: {len(key)}'
        )
    return key

# --- Symmetric Encryption (AES-CBC) ---

def encrypt_message(plaintext: str, key: bytes) -> str:
    """Encrypt plaintext under a fresh random IV. Returns 'hex(iv):hex(ciphertext)'."""
    key = load_encryption_key(key)
    iv = get_random_bytes(IV_LENGTH)
    cipher = AES.new(key, AES.MODE_CBC, iv=iv)
    ciphertext = cipher.encrypt(pad(plaintext.encode('utf-8'), AES.block_size))
    logging.debug(f'Encrypted message: ciphertext_len={len(ciphertext)}')
    return iv.hex() + SEPARATOR + ciphertext.hex()

def decrypt_message(token: str, key: bytes) -> str:
    """Inverse of encrypt_message.

    Only the first ':' separates the IV from the ciphertext; anything after it
    is read as ciphertext hex. Every decoding failure surfaces as
    MalformedTokenError.
    """
    key = load_encryption_key(key)
    if not isinstance(token, str) or SEPARATOR not in token:
        raise MalformedTokenError('Encrypted message must have the form iv:ciphertext')
    iv_hex, _, body_hex = token.partition(SEPARATOR)
    try:
        iv = binascii.unhexlify(iv_hex)
        ciphertext = binascii.unhexlify(body_hex)
    except (binascii.Error, ValueError):
        raise MalformedTokenError('Encrypted message is not valid hex')
    if len(iv) != IV_LENGTH:
        raise MalformedTokenError('Encrypted message has an invalid IV')
    if not ciphertext or len(ciphertext) % AES.block_size:
        raise MalformedTokenError('Encrypted message has an invalid length')
    try:
        cipher = AES.new(key, AES.MODE_CBC, iv=iv)
        plaintext = unpad(cipher.decrypt(ciphertext), AES.block_size).decode('utf-8')
    except ValueError:
        # bad padding (wrong key, tampered data) or non UTF-8 output
        logging.debug('Decryption failed: padding or encoding check rejected the token')
        raise MalformedTokenError('Unable to decrypt message')
    logging.debug(f'Decrypted message: ciphertext_len={len(ciphertext)}')
    return plaintext


@dataclass(frozen=True, repr=False)
class MessageCipher:
    """The process-wide key, validated once and bound to encode/decode."""

    key: bytes

    def __post_init__(self):
        object.__setattr__(self, 'key', load_encryption_key(self.key))

    def encode(self, plaintext: str) -> str:
        return encrypt_message(plaintext, self.key)

    def decode(self, token: str) -> str:
        return decrypt_message(token, self.key)

    def __repr__(self):
        return '<MessageCipher AES-256-CBC>'
