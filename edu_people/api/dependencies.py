from __future__ import annotations

from fastapi import HTTPException, status

from edu_people.core.config import settings
from edu_people.core.database import database_manager
from edu_people.store.directory import DirectoryStore


async def get_directory_store() -> DirectoryStore:
    table = database_manager.people_table
    if table is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="People table is unavailable. Ensure DynamoDB is configured.",
        )
    return DirectoryStore(table, page_size=settings.SCAN_PAGE_SIZE, strict_create=settings.STRICT_CREATE)
