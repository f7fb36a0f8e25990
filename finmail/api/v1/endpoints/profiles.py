"""
User profile endpoints.

Profiles hold the identifiers Gemini needs for PDF password derivation.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, HTTPException

from finmail.exceptions import ProfileNotFoundError, ProfileValidationError
from finmail.services import profile_service

router = APIRouter(prefix="/profiles", tags=["Profiles"])


@router.post("", status_code=201)
def create_profile(data: Dict[str, Any] = Body(...)):
    """Create a profile; firstName and lastName are required."""
    try:
        return profile_service.create_profile(data).to_json_dict()
    except ProfileValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("")
def list_profiles():
    profiles = profile_service.list_profiles()
    return {"total": len(profiles), "profiles": [p.to_json_dict() for p in profiles]}


@router.get("/{user_id}")
def get_profile(user_id: str):
    try:
        return profile_service.get_profile(user_id).to_json_dict()
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.patch("/{user_id}")
def update_profile(user_id: str, changes: Dict[str, Any] = Body(...)):
    """Partial update; identifiers are merged key by key."""
    try:
        return profile_service.update_profile(user_id, changes).to_json_dict()
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProfileValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{user_id}")
def delete_profile(user_id: str):
    try:
        profile_service.delete_profile(user_id)
    except ProfileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True, "message": f"Profile {user_id} deleted."}
