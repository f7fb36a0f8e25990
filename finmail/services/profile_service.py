"""
User profile storage - one JSON file per profile.

Updates are read-modify-write with no locking: simultaneous updates to
the same profile lose data, last writer wins.
"""

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from finmail import config
from finmail.exceptions import ProfileNotFoundError, ProfileValidationError, StorageError
from finmail.models.profile import Identifiers, UserProfile

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("firstName", "lastName")
_IMMUTABLE_FIELDS = ("userId", "user_id", "createdAt", "created_at")


def _profiles_dir(profiles_dir: Optional[str]) -> str:
    return profiles_dir or config.PROFILES_DIR


def _path(user_id: str, profiles_dir: Optional[str]) -> str:
    # user ids are uuid4 hex; anything else cannot name a stored profile
    try:
        uuid.UUID(user_id)
    except (ValueError, TypeError, AttributeError):
        raise ProfileNotFoundError(f"Profile not found: {user_id}")
    return os.path.join(_profiles_dir(profiles_dir), f"{user_id}.json")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _write(profile: UserProfile, profiles_dir: Optional[str]) -> None:
    directory = _profiles_dir(profiles_dir)
    os.makedirs(directory, exist_ok=True)
    try:
        with open(_path(profile.user_id, profiles_dir), "w", encoding="utf-8") as f:
            json.dump(profile.to_json_dict(), f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise StorageError(f"Failed to write profile {profile.user_id}: {e}") from e


def _validate(data: Dict[str, Any]) -> UserProfile:
    try:
        return UserProfile.model_validate(data)
    except ValidationError as e:
        raise ProfileValidationError(str(e)) from e


def _normalize_keys(data: Dict[str, Any], model=UserProfile) -> Dict[str, Any]:
    """Accept snake_case input by mapping it onto the camelCase aliases."""
    aliases = {name: field.alias for name, field in model.model_fields.items()}
    return {aliases.get(k, k): v for k, v in data.items()}


def create_profile(data: Dict[str, Any], profiles_dir: Optional[str] = None) -> UserProfile:
    """
    Validate and persist a new profile.

    Args:
        data: Profile fields (camelCase or snake_case); first and last
            name are required

    Returns:
        The stored UserProfile with a generated userId

    Raises:
        ProfileValidationError: required input missing or malformed
    """
    data = _normalize_keys(dict(data or {}))
    missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
    if missing:
        raise ProfileValidationError(f"Missing required fields: {', '.join(missing)}")

    for key in _IMMUTABLE_FIELDS:
        data.pop(key, None)

    now = _now()
    profile = _validate({**data, "userId": uuid.uuid4().hex, "createdAt": now, "updatedAt": now})
    _write(profile, profiles_dir)
    logger.info("👤 Created profile %s", profile.user_id)
    return profile


def get_profile(user_id: str, profiles_dir: Optional[str] = None) -> UserProfile:
    path = _path(user_id, profiles_dir)
    if not os.path.exists(path):
        raise ProfileNotFoundError(f"Profile not found: {user_id}")
    with open(path, "r", encoding="utf-8") as f:
        return UserProfile.model_validate(json.load(f))


def list_profiles(profiles_dir: Optional[str] = None) -> List[UserProfile]:
    directory = _profiles_dir(profiles_dir)
    if not os.path.isdir(directory):
        return []

    profiles = []
    for filename in sorted(os.listdir(directory)):
        if not filename.endswith(".json"):
            continue
        try:
            profiles.append(get_profile(filename[:-5], profiles_dir))
        except (ProfileNotFoundError, ValueError) as e:
            logger.warning("⚠️ Skipping unreadable profile %s: %s", filename, e)
    return profiles


def update_profile(
    user_id: str,
    changes: Dict[str, Any],
    profiles_dir: Optional[str] = None
) -> UserProfile:
    """
    Merge changes into a stored profile.

    Top-level keys replace stored values; 'identifiers' is merged key by
    key so a partial update keeps the other identifiers.
    """
    current = get_profile(user_id, profiles_dir).to_json_dict()
    changes = _normalize_keys(dict(changes or {}))

    for key in _IMMUTABLE_FIELDS:
        changes.pop(key, None)

    if "identifiers" in changes and isinstance(changes["identifiers"], dict):
        identifiers = dict(current.get("identifiers") or {})
        identifiers.update(_normalize_keys(changes.pop("identifiers"), Identifiers))
        current["identifiers"] = identifiers

    current.update(changes)
    for field in REQUIRED_FIELDS:
        if not str(current.get(field) or "").strip():
            raise ProfileValidationError(f"{field} cannot be empty")

    current["updatedAt"] = _now()
    profile = _validate(current)
    _write(profile, profiles_dir)
    logger.info("✏️ Updated profile %s", user_id)
    return profile


def delete_profile(user_id: str, profiles_dir: Optional[str] = None) -> None:
    path = _path(user_id, profiles_dir)
    if not os.path.exists(path):
        raise ProfileNotFoundError(f"Profile not found: {user_id}")
    os.remove(path)
    logger.info("🗑️ Deleted profile %s", user_id)
