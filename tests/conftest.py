import copy
import re
import threading

import pytest
from botocore.exceptions import ClientError

from edu_people.store.directory import DirectoryStore

_MISSING = object()
_CONDITION = re.compile(r"^(attribute_exists|attribute_not_exists)\((.+)\)$")


def client_error(code, operation, message="stubbed failure"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class StubPeopleTable:
    """In-memory stand-in for a boto3 DynamoDB Table resource.

    Understands the expression shapes the directory store emits, paginates
    scans after ``page_size`` evaluated items like DynamoDB's ``Limit`` and
    records every call for later assertions.
    """

    key = "ucinetid"

    def __init__(self, page_size=None, fail_on_scan=None):
        self.items = {}
        self.calls = []
        self.page_size = page_size
        self.fail_on_scan = fail_on_scan
        self.scan_count = 0

    def calls_to(self, operation):
        return [params for name, params in self.calls if name == operation]

    def get_item(self, Key, ConsistentRead=False):
        self.calls.append(("get_item", {"Key": Key, "ConsistentRead": ConsistentRead}))
        item = self.items.get(Key[self.key])
        if item is None:
            return {}
        return {"Item": copy.deepcopy(item)}

    def put_item(self, Item, ConditionExpression=None, ExpressionAttributeNames=None):
        self.calls.append(("put_item", {"Item": Item, "ConditionExpression": ConditionExpression}))
        current = self.items.get(Item[self.key])
        if ConditionExpression and not self._check(ConditionExpression, ExpressionAttributeNames or {}, current):
            raise client_error("ConditionalCheckFailedException", "PutItem")
        self.items[Item[self.key]] = copy.deepcopy(Item)
        return {}

    def update_item(
        self,
        Key,
        UpdateExpression,
        ExpressionAttributeNames=None,
        ExpressionAttributeValues=None,
        ConditionExpression=None,
        ReturnValues=None,
    ):
        names = ExpressionAttributeNames or {}
        values = ExpressionAttributeValues or {}
        self.calls.append(
            (
                "update_item",
                {
                    "Key": Key,
                    "UpdateExpression": UpdateExpression,
                    "ExpressionAttributeNames": names,
                    "ExpressionAttributeValues": values,
                    "ConditionExpression": ConditionExpression,
                },
            )
        )
        current = self.items.get(Key[self.key])
        if ConditionExpression and not self._check(ConditionExpression, names, current):
            raise client_error("ConditionalCheckFailedException", "UpdateItem")

        item = copy.deepcopy(current) if current is not None else dict(Key)
        action, _, body = UpdateExpression.partition(" ")
        for clause in body.split(","):
            if action.upper() == "SET":
                path, token = (part.strip() for part in clause.split("="))
                self._set(item, self._resolve(path, names), copy.deepcopy(values[token]))
            elif action.upper() == "REMOVE":
                self._remove(item, self._resolve(clause, names))
            else:
                raise client_error("ValidationException", "UpdateItem", f"unsupported action {action}")
        self.items[Key[self.key]] = item
        return {}

    def scan(self, FilterExpression=None, ExpressionAttributeNames=None, Limit=None, ExclusiveStartKey=None):
        self.calls.append(
            (
                "scan",
                {
                    "FilterExpression": FilterExpression,
                    "ExpressionAttributeNames": ExpressionAttributeNames,
                    "Limit": Limit,
                    "ExclusiveStartKey": ExclusiveStartKey,
                },
            )
        )
        self.scan_count += 1
        if self.fail_on_scan is not None and self.scan_count == self.fail_on_scan:
            raise client_error("ProvisionedThroughputExceededException", "Scan")

        keys = list(self.items)
        start = keys.index(ExclusiveStartKey[self.key]) + 1 if ExclusiveStartKey else 0
        limit = max(Limit or self.page_size or len(keys), 1)
        window = keys[start : start + limit]

        matched = []
        for key in window:
            item = self.items[key]
            if FilterExpression and not self._check(FilterExpression, ExpressionAttributeNames or {}, item):
                continue
            matched.append(copy.deepcopy(item))

        response = {"Items": matched, "Count": len(matched), "ScannedCount": len(window)}
        if start + limit < len(keys):
            response["LastEvaluatedKey"] = {self.key: window[-1]}
        return response

    @staticmethod
    def _resolve(path, names):
        return [names.get(part.strip(), part.strip()) for part in path.strip().split(".")]

    def _check(self, expression, names, item):
        match = _CONDITION.match(expression.strip())
        if match is None:
            raise client_error("ValidationException", "Condition", f"unsupported expression {expression}")
        function, path = match.groups()
        exists = item is not None and self._lookup(item, self._resolve(path, names)) is not _MISSING
        return exists if function == "attribute_exists" else not exists

    @staticmethod
    def _lookup(item, parts):
        current = item
        for part in parts:
            if not isinstance(current, dict) or part not in current:
                return _MISSING
            current = current[part]
        return current

    def _parent(self, item, parts):
        parent = self._lookup(item, parts[:-1]) if len(parts) > 1 else item
        if not isinstance(parent, dict):
            raise client_error(
                "ValidationException",
                "UpdateItem",
                "The document path provided in the update expression is invalid for update",
            )
        return parent

    def _set(self, item, parts, value):
        self._parent(item, parts)[parts[-1]] = value

    def _remove(self, item, parts):
        self._parent(item, parts).pop(parts[-1], None)


class BlockingScanTable(StubPeopleTable):
    """Scan blocks until ``release`` is set, to exercise cancellation."""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def scan(self, **params):
        self.started.set()
        self.release.wait(timeout=5)
        return super().scan(**params)


@pytest.fixture
def table():
    return StubPeopleTable()


@pytest.fixture
def store(table):
    return DirectoryStore(table, page_size=None, strict_create=False)
