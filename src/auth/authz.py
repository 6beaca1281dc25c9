# src/auth/authz.py — v1
"""Household role checks over membership documents.

Membership documents live at ``households/{h}/members/{uid}`` with a
``role`` field; they are managed elsewhere and only read here.
"""

from __future__ import annotations

from stowvision.core.errors import PermissionDenied, Unauthenticated
from stowvision.storage import paths
from stowvision.storage.base_document_store import BaseDocumentStore

ADMIN_ROLES = frozenset({"OWNER", "ADMIN"})


def require_uid(actor: str | None) -> str:
    """Return the actor id or raise Unauthenticated."""
    if not actor:
        raise Unauthenticated("Authentication required")
    return actor


async def get_membership_role(
    store: BaseDocumentStore, household_id: str, uid: str,
) -> str | None:
    doc = await store.get(paths.member(household_id, uid))
    if doc is None:
        return None
    return doc.get("role") or None


async def require_household_member(
    store: BaseDocumentStore, household_id: str, uid: str,
) -> str:
    role = await get_membership_role(store, household_id, uid)
    if not role:
        raise PermissionDenied("You are not a member of this household")
    return role


async def require_household_admin(
    store: BaseDocumentStore, household_id: str, uid: str,
) -> str:
    role = await require_household_member(store, household_id, uid)
    if role not in ADMIN_ROLES:
        raise PermissionDenied("Admin role required")
    return role
