"""key derivation and AES-GCM helpers for the encrypted file store."""
import os
import socket
import hashlib
from pathlib import Path
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..domain.errors import StorageIOError
from ..utils.fs import atomic_write_bytes, ensure_private_dir

SALT_SIZE = 32
NONCE_SIZE = 12


def get_or_create_salt(salt_path: Path) -> bytes:
    """read the persisted salt, creating it with owner-only permissions first time."""
    if salt_path.exists():
        try:
            salt = salt_path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"failed to read salt: {e}", salt_path) from e
        if len(salt) == SALT_SIZE:
            return salt
        raise StorageIOError(
            f"salt file {salt_path} is corrupt ({len(salt)} bytes)", salt_path
        )

    ensure_private_dir(salt_path.parent)
    salt = os.urandom(SALT_SIZE)
    atomic_write_bytes(salt_path, salt)
    return salt


def derive_key(
    salt: bytes,
    home: Optional[Path] = None,
    hostname: Optional[str] = None,
) -> bytes:
    """
    derive a 32-byte AES key from machine identity and the salt.

    args:
        salt: persisted random salt
        home: user home directory (defaults to the current one)
        hostname: machine hostname (defaults to the current one)
    """
    home = home or Path.home()
    hostname = hostname if hostname is not None else socket.gethostname()
    digest = hashlib.sha256()
    digest.update(f"cflip:{home}:{hostname}".encode("utf-8"))
    digest.update(salt)
    return digest.digest()


def encrypt(data: bytes, key: bytes) -> bytes:
    """encrypt data, returning nonce + ciphertext (with GCM tag)."""
    nonce = os.urandom(NONCE_SIZE)
    return nonce + AESGCM(key).encrypt(nonce, data, None)


def decrypt(blob: bytes, key: bytes) -> bytes:
    if len(blob) < NONCE_SIZE:
        raise StorageIOError("ciphertext too short")
    nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise StorageIOError(
            "failed to decrypt secret (wrong machine key or tampered file)"
        ) from e
