# Copyright (c) 2025 Shiladitya Mallick
# This file is part of the Goaltrack - Your Goal Companion project.
# Licensed under the MIT License - see the LICENSE file for details.

"""
Fernet encryption for free-text user content (journals, reflections, nudges,
notifications, obstacles).

FERNET_SECRET encrypts new values. FERNET_PREVIOUS_SECRETS, a comma-separated
list, keeps older keys readable after a rotation.
"""

import os
from typing import List
from sqlalchemy.types import TypeDecorator, Text
from cryptography.fernet import Fernet, MultiFernet, InvalidToken

if os.getenv("ENV") != "production":
    from dotenv import load_dotenv
    load_dotenv()


def _load_key(value: str, name: str) -> Fernet:
    try:
        return Fernet(value.strip())
    except Exception as e:
        raise ValueError(f"{name} is invalid. Make sure it is a valid 32-byte base64 string.") from e


def _build_keyring() -> MultiFernet:
    current = os.getenv("FERNET_SECRET")
    if not current:
        raise EnvironmentError("FERNET_SECRET is missing. Please set it in your environment or .env file.")

    keys: List[Fernet] = [_load_key(current, "FERNET_SECRET")]
    previous = os.getenv("FERNET_PREVIOUS_SECRETS", "")
    keys.extend(_load_key(k, "FERNET_PREVIOUS_SECRETS") for k in previous.split(",") if k.strip())
    return MultiFernet(keys)


keyring = _build_keyring()


def encrypt(text: str) -> str:
    return keyring.encrypt(text.encode()).decode()


def decrypt(token: str) -> str:
    try:
        return keyring.decrypt(token.encode()).decode()
    except InvalidToken as e:
        raise ValueError("Stored value could not be decrypted with the configured Fernet keys") from e


def rotate(token: str) -> str:
    """Re-encrypts a stored value under the current key."""
    return keyring.rotate(token.encode()).decode()


class EncryptedTypeHybrid(TypeDecorator):
    """Text column, Fernet-encrypted at rest and plain text in Python."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return encrypt(value) if value is not None else None

    def process_result_value(self, value, dialect):
        return decrypt(value) if value is not None else None
