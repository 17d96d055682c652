"""Field-level encryption for medical notes.

Notes are sealed with AES-GCM. Each stored payload keeps the ciphertext,
the nonce and the id of the key that sealed it, so the active key can be
rotated while older records stay readable through the retired keys.
"""
import base64
import os
from dataclasses import dataclass
from typing import Dict, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from securevet.core.config import settings


class DecryptionError(Exception):
    pass


@dataclass
class SealedText:
    ciphertext: str
    nonce: str
    key_id: str

    def as_fields(self) -> Dict[str, str]:
        return {
            "notes_encrypted": self.ciphertext,
            "iv": self.nonce,
            "key_id": self.key_id,
        }


def _b64e(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii")


def _b64d(text: str) -> bytes:
    return base64.urlsafe_b64decode(text.encode("ascii"))


def load_key(encoded: str) -> bytes:
    key = _b64d(encoded)
    if len(key) != 32:
        raise ValueError("Encryption keys must be 32 bytes (urlsafe base64 encoded)")
    return key


class FieldCipher:
    def __init__(self, active_key_id: str, keys: Dict[str, bytes]):
        if active_key_id not in keys:
            raise ValueError(f"Active key {active_key_id!r} is not in the keyring")
        self.active_key_id = active_key_id
        self._keys = dict(keys)

    def encrypt(self, plain_text: str) -> SealedText:
        nonce = os.urandom(12)
        # key id is bound as associated data so a payload cannot be relabelled
        aad = self.active_key_id.encode("utf-8")
        ciphertext = AESGCM(self._keys[self.active_key_id]).encrypt(
            nonce, (plain_text or "").encode("utf-8"), aad
        )
        return SealedText(_b64e(ciphertext), _b64e(nonce), self.active_key_id)

    def decrypt(self, ciphertext: str, nonce: str, key_id: Optional[str] = None) -> str:
        key_id = key_id or self.active_key_id
        key = self._keys.get(key_id)
        if key is None:
            raise DecryptionError(f"Unknown encryption key id {key_id!r}")
        try:
            plain = AESGCM(key).decrypt(_b64d(nonce), _b64d(ciphertext), key_id.encode("utf-8"))
        except (InvalidTag, ValueError) as exc:
            raise DecryptionError("Encrypted payload could not be opened") from exc
        return plain.decode("utf-8")

    def decrypt_fields(self, doc: Dict) -> str:
        return self.decrypt(doc["notes_encrypted"], doc["iv"], doc.get("key_id"))


def build_cipher() -> FieldCipher:
    keys = {k: load_key(v) for k, v in settings.ENCRYPTION_RETIRED_KEYS.items()}
    keys[settings.ENCRYPTION_KEY_ID] = load_key(settings.ENCRYPTION_KEY)
    return FieldCipher(settings.ENCRYPTION_KEY_ID, keys)
