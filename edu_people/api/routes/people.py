"""Person and permission endpoints.

Handlers delegate straight to the directory store and apply the read
projections (default email, permission views) to whatever it returns.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from edu_people.api.dependencies import get_directory_store
from edu_people.core.config import settings
from edu_people.models import ALL_SERVICES, Permission, PermissionView, Person, PersonInput, PersonView
from edu_people.store.directory import DirectoryStore

router = APIRouter(prefix="/people", tags=["people"])


def _view(person: Person) -> PersonView:
    return PersonView.from_person(person, settings.EMAIL_DOMAIN)


@router.get("", response_model=List[PersonView])
async def list_people(
    service: str = Query(ALL_SERVICES, min_length=1, description="Service name, or 'all' for everyone."),
    store: DirectoryStore = Depends(get_directory_store),
) -> List[PersonView]:
    """All people with an entry for ``service``."""

    people = await store.list_people(service)
    return [_view(person) for person in people]


@router.put("", response_model=PersonView)
async def set_person(payload: PersonInput, store: DirectoryStore = Depends(get_directory_store)) -> PersonView:
    """Create the person if unknown, otherwise merge the supplied fields."""

    person = await store.upsert(payload)
    return _view(person)


@router.get("/{ucinetid}", response_model=PersonView)
async def get_person(ucinetid: str, store: DirectoryStore = Depends(get_directory_store)) -> PersonView:
    person = await store.find(ucinetid)
    if person is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found")
    return _view(person)


@router.get("/{ucinetid}/permissions/{service}", response_model=PermissionView)
async def get_permission(
    ucinetid: str,
    service: str,
    store: DirectoryStore = Depends(get_directory_store),
) -> PermissionView:
    person = await store.find(ucinetid)
    if person is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Person not found")
    permission = person.service(service)
    if permission is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Permission not found")
    return PermissionView(**permission.model_dump())


@router.put("/{ucinetid}/permissions", response_model=PersonView)
async def set_permission(
    ucinetid: str,
    permission: Permission,
    store: DirectoryStore = Depends(get_directory_store),
) -> PersonView:
    person = await store.set_permission(ucinetid, permission)
    return _view(person)


@router.delete("/{ucinetid}/permissions/{service}", response_model=PersonView)
async def remove_permission(
    ucinetid: str,
    service: str,
    store: DirectoryStore = Depends(get_directory_store),
) -> PersonView:
    person = await store.remove_permission(ucinetid, service)
    return _view(person)
