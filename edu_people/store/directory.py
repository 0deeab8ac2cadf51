"""DynamoDB-backed repository of people and their per-service permissions.

Every public operation is a strictly ordered chain of awaited table calls.
Nothing here locks or batches, so concurrent callers race at the table:

* `upsert` looks the id up and then creates or updates. Two concurrent
  upserts of a never-seen id can both decide to create; the later put wins
  and nothing is merged. Set ``STRICT_CREATE`` to turn the losing create
  into a `DuplicateRecordError` instead.
* `set_permission` / `remove_permission` touch one nested key each, so
  calls for different services on the same person do not clobber each other.

Reads that follow a write use strongly consistent `get_item` so the caller
sees the record the write produced.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, AsyncIterator, Dict, Iterator, List, Mapping, Optional, Union

from botocore.exceptions import ClientError

from edu_people.core.config import settings
from edu_people.core.database import KEY_ATTRIBUTE
from edu_people.core.exceptions import DuplicateRecordError, PersonNotFoundError, ValidationError
from edu_people.core.observability import get_tracer
from edu_people.models import ALL_SERVICES, Permission, Person, PersonInput, is_all_services
from edu_people.store import expressions
from edu_people.store.codec import from_dynamo, to_dynamo
from edu_people.utils.monitoring import directory_scan_pages_total, observe_operation

logger = logging.getLogger(__name__)
tracer = get_tracer(__name__)

SERVICES_ATTRIBUTE = "_services"
REQUIRED_FIELDS = ("firstName", "lastName")
OPTIONAL_FIELDS = ("middleName", "email", "photo")
PROTECTED_ATTRIBUTES = frozenset({KEY_ATTRIBUTE, "service", "services", SERVICES_ATTRIBUTE})

PersonLike = Union[PersonInput, Mapping[str, Any]]


def normalize_id(ucinetid: str) -> str:
    return ucinetid.lower()


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DirectoryStore:
    """Person CRUD and nested permission mutation over a DynamoDB table resource."""

    def __init__(
        self,
        table: Any,
        *,
        page_size: Optional[int] = None,
        strict_create: Optional[bool] = None,
    ) -> None:
        self.table = table
        self.page_size = page_size if page_size is not None else settings.SCAN_PAGE_SIZE
        self.strict_create = settings.STRICT_CREATE if strict_create is None else strict_create

    async def find(self, ucinetid: str) -> Optional[Person]:
        """Return the person for ``ucinetid`` (any casing), or None."""

        with self._operation("find"):
            return await self._get(normalize_id(ucinetid))

    async def iter_pages(self, service: str = ALL_SERVICES) -> AsyncIterator[List[Person]]:
        """Yield scan pages until DynamoDB stops returning a continuation key.

        Each call starts a fresh scan. A concrete ``service`` is pushed down
        as a server-side filter on the nested map key.
        """

        params: Dict[str, Any] = {}
        if not is_all_services(service):
            params.update(expressions.nested_key_exists(SERVICES_ATTRIBUTE, service).as_filter())
        if self.page_size:
            params["Limit"] = self.page_size

        page = 0
        while True:
            response = await asyncio.to_thread(self.table.scan, **params)
            page += 1
            directory_scan_pages_total.inc()
            items = response.get("Items", [])
            logger.debug("Scanned page %d for service=%s with %d items", page, service, len(items))
            yield [self._decode(item) for item in items]

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                break
            params["ExclusiveStartKey"] = last_key

    async def list_people(self, service: str = ALL_SERVICES) -> List[Person]:
        """Everyone, or everyone holding an entry for ``service``, across all pages."""

        with self._operation("list"):
            people: List[Person] = []
            async for page in self.iter_pages(service):
                people.extend(page)
            return people

    async def upsert(self, person: PersonLike) -> Person:
        payload = self._coerce(person)
        with self._operation("upsert"):
            existing = await self._get(normalize_id(payload.ucinetid))
            if existing is None:
                return await self.create(payload)
            return await self.update(payload)

    async def create(self, person: PersonLike) -> Person:
        payload = self._coerce(person)
        with self._operation("create"):
            fields = payload.provided_fields()
            missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
            if missing:
                raise ValidationError(f"Missing required fields for {payload.ucinetid}: {', '.join(missing)}")

            key = normalize_id(payload.ucinetid)
            item: Dict[str, Any] = {KEY_ATTRIBUTE: key}
            for name in REQUIRED_FIELDS:
                item[name] = fields[name]
            for name in OPTIONAL_FIELDS:
                if fields.get(name):
                    item[name] = fields[name]
            item[SERVICES_ATTRIBUTE] = {}

            params: Dict[str, Any] = {"Item": to_dynamo(item)}
            if self.strict_create:
                params.update(expressions.attribute_not_exists(KEY_ATTRIBUTE).as_condition())

            try:
                await asyncio.to_thread(self.table.put_item, **params)
            except ClientError as exc:
                if self.strict_create and _error_code(exc) == "ConditionalCheckFailedException":
                    raise DuplicateRecordError(f"A person with ucinetid {key} already exists") from exc
                raise

            logger.info("Created person %s", key)
            return await self._require(key)

    async def update(self, person: PersonLike) -> Person:
        """Merge the supplied scalar fields into an existing record."""

        payload = self._coerce(person)
        with self._operation("update"):
            key = normalize_id(payload.ucinetid)
            fields = {
                name: value
                for name, value in payload.provided_fields().items()
                if name not in PROTECTED_ATTRIBUTES
            }
            update = expressions.set_fields(to_dynamo(fields))
            if update is None:
                logger.debug("No updatable fields supplied for %s", key)
                return await self._require(key)

            params = expressions.merge(update, expressions.attribute_exists(KEY_ATTRIBUTE))
            try:
                await asyncio.to_thread(self.table.update_item, Key={KEY_ATTRIBUTE: key}, **params)
            except ClientError as exc:
                if _error_code(exc) == "ConditionalCheckFailedException":
                    raise PersonNotFoundError(key) from exc
                raise

            logger.info("Updated person %s fields=%s", key, sorted(fields))
            return await self._require(key)

    async def set_permission(self, ucinetid: str, permission: Union[Permission, Mapping[str, Any]]) -> Person:
        """Replace the person's entry for ``permission.service`` with the given one."""

        if not isinstance(permission, Permission):
            permission = Permission.model_validate(permission)
        with self._operation("set_permission"):
            key = normalize_id(ucinetid)
            await self._require(key)

            entry = to_dynamo(permission.to_entry().model_dump())
            update = expressions.set_nested(SERVICES_ATTRIBUTE, permission.service, entry)
            await asyncio.to_thread(self.table.update_item, Key={KEY_ATTRIBUTE: key}, **update.as_update())

            logger.info("Set permission %s for %s roles=%s", permission.service, key, permission.roles)
            return await self._require(key)

    async def remove_permission(self, ucinetid: str, service: str) -> Person:
        """Drop the person's entry for ``service``; an absent entry is left as is."""

        with self._operation("remove_permission"):
            key = normalize_id(ucinetid)
            await self._require(key)

            update = expressions.remove_nested(SERVICES_ATTRIBUTE, service)
            await asyncio.to_thread(self.table.update_item, Key={KEY_ATTRIBUTE: key}, **update.as_update())

            logger.info("Removed permission %s for %s", service, key)
            return await self._require(key)

    async def _get(self, key: str) -> Optional[Person]:
        response = await asyncio.to_thread(
            self.table.get_item,
            Key={KEY_ATTRIBUTE: key},
            ConsistentRead=True,
        )
        item = response.get("Item")
        if item is None:
            return None
        return self._decode(item)

    async def _require(self, key: str) -> Person:
        person = await self._get(key)
        if person is None:
            raise PersonNotFoundError(key)
        return person

    @staticmethod
    def _decode(item: Mapping[str, Any]) -> Person:
        record = from_dynamo(dict(item))
        record.setdefault(SERVICES_ATTRIBUTE, {})
        return Person.model_validate(record)

    @staticmethod
    def _coerce(person: PersonLike) -> PersonInput:
        if isinstance(person, PersonInput):
            return person
        return PersonInput.model_validate(person)

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        with tracer.start_as_current_span(f"directory.{name}"):
            try:
                yield
            except Exception:
                observe_operation(name, "error")
                raise
            observe_operation(name, "ok")


__all__ = ["DirectoryStore", "SERVICES_ATTRIBUTE", "normalize_id"]
