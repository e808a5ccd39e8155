"""
Card number cipher: deterministic authenticated encryption at rest.

Card numbers are stored as AES-SIV ciphertext (RFC 5297) rather than in
clear text. AES-SIV is used without a nonce, which makes it deterministic:
the same card number always encrypts to the same token. That property is
what lets the card service enforce "one card per number" with a unique
index and an indexed equality lookup on the ciphertext column.

Accepted trade-off:
  Deterministic encryption reveals which stored rows share a plaintext,
  even to someone who cannot decrypt them. For card numbers, which are
  unique per card anyway, this leaks very little, but it is a real
  weakness compared to randomized encryption (e.g. Fernet). Moving to a
  randomized cipher would require a separate blind index (a keyed hash
  such as HMAC-SHA256 of the number) for the uniqueness check.

Failure model:
  A token that fails to decode or authenticate means stored data is
  corrupted or the key is wrong. That is not a business error, so it is
  raised as CardNumberCipherError (an InternalError). The message never
  contains the token or the plaintext.
"""

import base64
import binascii

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESSIV

from bankcards.config import settings
from bankcards.exceptions import CardNumberCipherError

# Binds every token to its purpose; a token produced for another field
# under the same key will not authenticate as a card number.
_ASSOCIATED_DATA = [b"bankcards.card_number"]


class CardNumberCipher:
    """Symmetric, deterministic encryption of card numbers."""

    def __init__(self, key: bytes):
        try:
            self._aead = AESSIV(key)
        except ValueError as exc:
            raise CardNumberCipherError("key setup") from exc

    @classmethod
    def from_key_string(cls, encoded_key: str) -> "CardNumberCipher":
        """Build a cipher from a URL-safe base64 key (32, 48 or 64 raw bytes)."""
        try:
            key = base64.urlsafe_b64decode(encoded_key.encode())
        except (binascii.Error, ValueError) as exc:
            raise CardNumberCipherError("key setup") from exc
        return cls(key)

    def encrypt(self, plain_number: str) -> str:
        """Encrypt a card number into an opaque URL-safe text token."""
        ciphertext = self._aead.encrypt(plain_number.encode(), _ASSOCIATED_DATA)
        return base64.urlsafe_b64encode(ciphertext).decode()

    def decrypt(self, token: str) -> str:
        """
        Decrypt a token produced by encrypt().

        Raises:
            CardNumberCipherError: If the token is malformed, was tampered
                with, or was encrypted under a different key.
        """
        try:
            ciphertext = base64.urlsafe_b64decode(token.encode())
            return self._aead.decrypt(ciphertext, _ASSOCIATED_DATA).decode()
        except (InvalidTag, binascii.Error, ValueError) as exc:
            raise CardNumberCipherError("decryption") from exc


# Key is provisioned once at process start.
card_cipher = CardNumberCipher.from_key_string(settings.CARD_ENCRYPTION_KEY)
