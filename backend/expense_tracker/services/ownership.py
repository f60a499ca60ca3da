# Overview: Shared lookups for user-scoped records.

from __future__ import annotations

from sqlalchemy.orm import Session

from ..errors import NotFoundError


def get_owned(session: Session, model, user_id: int, record_id: int, label: str):
    """
    Fetch a record by id, scoped to its owner.

    Records owned by someone else are indistinguishable from missing ones.
    """
    record = session.query(model).filter(
        model.id == record_id,
        model.user_id == user_id,
    ).first()
    if record is None:
        raise NotFoundError(f"{label} not found")
    return record


def delete_owned(session: Session, model, user_id: int, record_id: int, label: str) -> None:
    deleted = session.query(model).filter(
        model.id == record_id,
        model.user_id == user_id,
    ).delete(synchronize_session=False)
    session.commit()
    if not deleted:
        raise NotFoundError(f"{label} not found")


def apply_patch(record, patch: dict) -> None:
    for key, value in patch.items():
        setattr(record, key, value)
