"""
Stored JSON file endpoints.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from finmail.exceptions import StorageError, StoredFileNotFoundError
from finmail.models.stored_file import FileKind
from finmail.services import storage_service

router = APIRouter(prefix="/files", tags=["Stored Files"])


@router.get("")
def list_files(kind: Optional[FileKind] = Query(None)):
    """List stored files, newest first."""
    files = storage_service.list_files(kind)
    return {"total": len(files), "files": [f.to_json_dict() for f in files]}


@router.get("/{filename}")
def read_file(filename: str):
    try:
        return storage_service.read_file(filename)
    except StoredFileNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
