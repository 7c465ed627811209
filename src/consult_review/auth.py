"""API key authentication: resolves each key to an actor identity and role."""

from __future__ import annotations

import os
from dataclasses import dataclass

from fastapi import HTTPException
from starlette.requests import Request

from consult_review.audit_context import set_actor
from consult_review.case_lifecycle import Role

# When CONSULT_API_KEYS is empty or unset, one dev key per role (dev-only, not for production).
_DEFAULT_DEV_KEYS: dict[str, tuple[str, Role]] = {
    "dr_garcia": ("dev_submitter", Role.SUBMITTER),
    "dra_rodriguez": ("dev_reviewer", Role.REVIEWER),
    "coordinacion": ("dev_coordinator", Role.COORDINATOR),
}
_DEFAULT_ROLE = Role.SUBMITTER


@dataclass(frozen=True)
class Actor:
    identity: str
    role: Role


def parse_api_keys_env() -> dict[str, Actor]:
    """Parse CONSULT_API_KEYS into key -> Actor.
    Format: 'name1:key1:reviewer,name2:key2' (optional :role, default submitter)."""
    raw = os.environ.get("CONSULT_API_KEYS", "").strip()
    key_to_actor: dict[str, Actor] = {}
    for part in raw.split(","):
        part = part.strip()
        if ":" not in part:
            continue
        parts = part.split(":")
        name = parts[0].strip()
        key = parts[1].strip() if len(parts) > 1 else ""
        role_raw = parts[2].strip().upper() if len(parts) > 2 else _DEFAULT_ROLE.value
        role = Role(role_raw) if role_raw in Role.__members__ else _DEFAULT_ROLE
        if name and key:
            key_to_actor[key] = Actor(identity=name, role=role)
    if not key_to_actor:
        return {key: Actor(name, role) for name, (key, role) in _DEFAULT_DEV_KEYS.items()}
    return key_to_actor


def require_actor(request: Request) -> Actor:
    """Validate X-API-Key header; set audit actor; return the resolved Actor.
    Raises 401 if header missing or key invalid."""
    api_key = request.headers.get("X-API-Key")
    if not api_key:
        raise HTTPException(status_code=401, detail="Missing X-API-Key")
    actor = parse_api_keys_env().get(api_key)
    if actor is None:
        raise HTTPException(status_code=401, detail="Invalid API key")
    set_actor(actor.identity)
    return actor
