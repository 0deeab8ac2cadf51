from decimal import Decimal

import pytest

from edu_people.core.exceptions import ValidationError
from edu_people.models import Permission, Person, PersonInput, PersonView
from edu_people.store.codec import from_dynamo, to_dynamo


def make_person(**overrides):
    record = {
        "ucinetid": "abc123",
        "firstName": "Peter",
        "lastName": "Anteater",
        "_services": {
            "svc1": {"roles": ["admin"], "settings": {"theme": "dark"}},
            "svc2": {"roles": [], "settings": {}},
        },
    }
    record.update(overrides)
    return Person.model_validate(record)


def test_email_defaults_to_campus_address():
    person = make_person()

    assert person.resolved_email("uci.edu") == "abc123@uci.edu"
    assert make_person(email="pa@example.com").resolved_email("uci.edu") == "pa@example.com"


def test_service_projection_uses_map_key():
    person = make_person(_services={"svc1": {"roles": ["admin"], "settings": {"service": "spoofed"}}})

    permission = person.service("svc1")

    assert permission == Permission(service="svc1", roles=["admin"], settings={"service": "spoofed"})
    assert person.service("ALL") is None
    assert person.service("") is None
    assert person.service("missing") is None


def test_permissions_lists_every_service():
    person = make_person()

    assert [(p.service, p.roles) for p in person.permissions()] == [("svc1", ["admin"]), ("svc2", [])]


def test_person_input_ignores_services_and_unset_fields():
    payload = PersonInput.model_validate(
        {"ucinetid": "abc123", "lastName": "X", "middleName": None, "services": {"svc1": {}}, "service": "svc1"}
    )

    assert payload.provided_fields() == {"lastName": "X"}


def test_person_view_projection():
    view = PersonView.from_person(make_person(), "uci.edu")
    body = view.model_dump(by_alias=True)

    assert body["email"] == "abc123@uci.edu"
    assert body["firstName"] == "Peter"
    assert body["middleName"] is None
    assert body["services"][0] == {"service": "svc1", "roles": ["admin"], "settings": {"theme": "dark"}}


def test_codec_handles_dynamodb_numbers():
    stored = to_dynamo({"a": 1, "ratio": 0.25, "flag": True, "nested": [1.5, {"n": None}]})

    assert stored == {"a": 1, "ratio": Decimal("0.25"), "flag": True, "nested": [Decimal("1.5"), {"n": None}]}
    assert from_dynamo({"count": Decimal("3"), "ratio": Decimal("0.25")}) == {"count": 3, "ratio": 0.25}
    assert isinstance(from_dynamo(Decimal("3")), int)


def test_decode_tolerates_null_roles_from_older_rows():
    person = make_person(
        _services={
            "legacy": {"service": "legacy", "roles": None, "settings": {}},
            "mixed": {"service": "mixed", "roles": ["admin", None, "viewer"]},
        }
    )

    assert person.services["legacy"].roles == []
    assert person.services["mixed"].roles == ["admin", "viewer"]
    assert person.services["mixed"].settings == {}
    assert person.service("legacy") == Permission(service="legacy", roles=[], settings={})


@pytest.mark.parametrize(
    "value",
    [float("inf"), float("-inf"), float("nan"), 1e300, 1e-200, 10**40 + 1],
)
def test_codec_rejects_numbers_dynamodb_cannot_store(value):
    with pytest.raises(ValidationError):
        to_dynamo({"settings": {"nested": [value]}})


def test_codec_accepts_numbers_at_the_edges():
    assert to_dynamo(1e125) == Decimal("1E+125")
    assert to_dynamo(1e-130) == Decimal("1E-130")
    assert to_dynamo(0.0) == Decimal("0.0")
    assert to_dynamo(10**37) == 10**37
