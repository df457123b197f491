"""Utility helpers for the models package."""

from __future__ import annotations

import secrets
import string
from typing import Optional, Type

from sqlalchemy import select
from sqlalchemy.orm import Session

BASE62_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase


def generate_record_id(
    prefix: str,
    session: Optional[Session] = None,
    model: Optional[Type] = None,
    length: int = 12,
    max_attempts: int = 32,
) -> str:
    """Return a ``<prefix>-<base62>`` identifier for a new record.

    When both ``session`` and ``model`` are provided, the helper retries if
    the generated value is already present (or pending) as ``model.id``.
    """

    attempts = 0
    while attempts < max_attempts:
        suffix = "".join(secrets.choice(BASE62_ALPHABET) for _ in range(length))
        candidate = f"{prefix}-{suffix}"[:64]

        if session is not None and model is not None:
            pending = any(
                isinstance(obj, model) and getattr(obj, "id", None) == candidate
                for obj in session.new
            )
            if pending:
                attempts += 1
                continue

            exists = session.scalar(select(model.id).where(model.id == candidate))
            if exists is not None:
                attempts += 1
                continue

        return candidate

    raise RuntimeError(
        f"Unable to generate a unique '{prefix}' identifier after multiple attempts"
    )
