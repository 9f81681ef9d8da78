"""
Password hashing and complexity rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Set

import bcrypt

MIN_PASSWORD_LENGTH = 12
MIN_CHARACTER_CLASSES = 2

_PUNCTUATION = re.compile(r"""[!@#$%^&*()+=\\`{}\[\]:";'< >?,./]""")


class PasswordCharClass(str, Enum):
    UPPERCASE = "UPPERCASE"
    LOWERCASE = "LOWERCASE"
    DIGIT = "DIGIT"
    PUNCTUATION = "PUNCTUATION"


class PasswordErrorType(str, Enum):
    EMPTY = "EMPTY"
    TOO_SHORT = "TOO_SHORT"
    INSUFFICIENT_CHARACTER_CLASSES = "INSUFFICIENT_CHARACTER_CLASSES"


@dataclass
class PasswordComplexity:
    error: Optional[PasswordErrorType]
    character_classes: Set[PasswordCharClass] = field(default_factory=set)


def character_classes(password: str) -> Set[PasswordCharClass]:
    classes: Set[PasswordCharClass] = set()
    if password.upper() != password:
        classes.add(PasswordCharClass.LOWERCASE)
    if password.lower() != password:
        classes.add(PasswordCharClass.UPPERCASE)
    if re.search(r"[0-9]", password):
        classes.add(PasswordCharClass.DIGIT)
    if _PUNCTUATION.search(password):
        classes.add(PasswordCharClass.PUNCTUATION)
    return classes


def check_password_complexity(password: str) -> PasswordComplexity:
    res = PasswordComplexity(error=None, character_classes=character_classes(password))
    if password == "":
        res.error = PasswordErrorType.EMPTY
    elif len(password) < MIN_PASSWORD_LENGTH:
        res.error = PasswordErrorType.TOO_SHORT
    elif len(res.character_classes) < MIN_CHARACTER_CLASSES:
        res.error = PasswordErrorType.INSUFFICIENT_CHARACTER_CLASSES
    return res


def password_hash(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def password_hash_compare(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False
