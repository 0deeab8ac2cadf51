from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ALL_SERVICES = "all"


def is_all_services(service: Optional[str]) -> bool:
    """True for the case-insensitive `all` sentinel."""

    return isinstance(service, str) and service.lower() == ALL_SERVICES


class PermissionEntry(BaseModel):
    """Value stored under one key of a person's services map.

    The entry is replaced as a whole by `set_permission`; fields inside it are
    never merged. `settings` is owned by the external service and is kept as
    whatever JSON value it sent.
    """

    roles: List[str] = Field(default_factory=list)
    settings: Any = Field(default_factory=dict)

    @field_validator("roles", mode="before")
    @classmethod
    def _drop_null_roles(cls, value: Any) -> Any:
        # Older rows may hold a null roles list or null elements inside it.
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [role for role in value if role is not None]
        return value


class Permission(PermissionEntry):
    """A permission entry paired with the service it belongs to."""

    service: str = Field(min_length=1)

    def to_entry(self) -> PermissionEntry:
        return PermissionEntry(roles=list(self.roles), settings=self.settings)


class Person(BaseModel):
    """A directory record as stored, with the services map keyed by service name."""

    model_config = ConfigDict(populate_by_name=True)

    ucinetid: str
    email: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    last_name: Optional[str] = Field(None, alias="lastName")
    photo: Optional[str] = None
    services: Dict[str, PermissionEntry] = Field(default_factory=dict, alias="_services")

    def service(self, name: Optional[str]) -> Optional[Permission]:
        if not name or is_all_services(name):
            return None
        entry = self.services.get(name)
        if entry is None:
            return None
        return Permission(service=name, roles=entry.roles, settings=entry.settings)

    def permissions(self) -> List[Permission]:
        return [
            Permission(service=name, roles=entry.roles, settings=entry.settings)
            for name, entry in self.services.items()
        ]

    def resolved_email(self, domain: str) -> str:
        return self.email or f"{self.ucinetid}@{domain}"


class PersonInput(BaseModel):
    """Create-or-update payload. Unknown keys such as `services` are dropped."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ucinetid: str = Field(min_length=1)
    email: Optional[str] = None
    first_name: Optional[str] = Field(None, alias="firstName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    last_name: Optional[str] = Field(None, alias="lastName")
    photo: Optional[str] = None

    def provided_fields(self) -> Dict[str, Any]:
        """Scalar attributes the caller supplied, keyed by stored attribute name."""

        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True, exclude={"ucinetid"})


class PermissionView(BaseModel):
    service: str
    roles: List[str]
    settings: Any


class PersonView(BaseModel):
    """Read projection returned by the HTTP layer."""

    model_config = ConfigDict(populate_by_name=True)

    ucinetid: str
    email: str
    first_name: Optional[str] = Field(None, alias="firstName")
    middle_name: Optional[str] = Field(None, alias="middleName")
    last_name: Optional[str] = Field(None, alias="lastName")
    photo: Optional[str] = None
    services: List[PermissionView] = Field(default_factory=list)

    @classmethod
    def from_person(cls, person: Person, email_domain: str) -> "PersonView":
        return cls(
            ucinetid=person.ucinetid,
            email=person.resolved_email(email_domain),
            first_name=person.first_name,
            middle_name=person.middle_name,
            last_name=person.last_name,
            photo=person.photo,
            services=[PermissionView(**permission.model_dump()) for permission in person.permissions()],
        )
