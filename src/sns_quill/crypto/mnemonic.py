"""BIP39 seed phrases and their secp256k1 PEM keys."""

from __future__ import annotations

from bip32 import BIP32
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from mnemonic import Mnemonic

from sns_quill.errors import InputValidationError

DERIVATION_PATH = "m/44'/223'/0'/0/0"
WORD_COUNT_TO_STRENGTH = {12: 128, 24: 256}

_WORDLIST = Mnemonic("english")


def generate_phrase(words: int = 12) -> str:
    strength = WORD_COUNT_TO_STRENGTH.get(words)
    if strength is None:
        raise InputValidationError("words must be 12 or 24")
    return _WORDLIST.generate(strength=strength)


def normalize_phrase(phrase: str) -> str:
    normalized = " ".join(phrase.split())
    if not _WORDLIST.check(normalized):
        raise InputValidationError("seed phrase is not a valid BIP39 mnemonic")
    return normalized


def mnemonic_to_pem(phrase: str, password: bytes | None = None) -> str:
    """Derive the PKCS8 PEM for ``m/44'/223'/0'/0/0`` from a seed phrase."""
    normalized = normalize_phrase(phrase)
    seed = Mnemonic.to_seed(normalized, passphrase="")
    secret = BIP32.from_seed(seed).get_privkey_from_path(DERIVATION_PATH)
    key = ec.derive_private_key(int.from_bytes(secret, "big"), ec.SECP256K1())
    if password:
        encryption: serialization.KeySerializationEncryption = (
            serialization.BestAvailableEncryption(password)
        )
    else:
        encryption = serialization.NoEncryption()
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        encryption,
    ).decode("ascii")
