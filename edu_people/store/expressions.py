"""Builders for DynamoDB update and filter expressions.

Every attribute name goes through an `ExpressionAttributeNames` placeholder.
Scalar field names may collide with DynamoDB reserved words (`name`, `status`)
and service names are free-form, so neither is ever spliced into the
expression text directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class Expression:
    """An expression string together with its placeholder maps."""

    text: str
    names: Dict[str, str] = field(default_factory=dict)
    values: Dict[str, Any] = field(default_factory=dict)

    def as_update(self) -> Dict[str, Any]:
        return self._params("UpdateExpression")

    def as_filter(self) -> Dict[str, Any]:
        return self._params("FilterExpression")

    def as_condition(self) -> Dict[str, Any]:
        return self._params("ConditionExpression")

    def _params(self, key: str) -> Dict[str, Any]:
        params: Dict[str, Any] = {key: self.text}
        if self.names:
            params["ExpressionAttributeNames"] = dict(self.names)
        if self.values:
            params["ExpressionAttributeValues"] = dict(self.values)
        return params


def set_fields(fields: Mapping[str, Any]) -> Optional[Expression]:
    """SET each given top-level attribute; returns None when there is nothing to set."""

    if not fields:
        return None

    clauses = []
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}
    for index, (attribute, value) in enumerate(fields.items()):
        name_token = f"#f{index}"
        value_token = f":f{index}"
        names[name_token] = attribute
        values[value_token] = value
        clauses.append(f"{name_token} = {value_token}")
    return Expression(text="SET " + ", ".join(clauses), names=names, values=values)


def set_nested(map_attribute: str, key: str, value: Any) -> Expression:
    """Replace the single entry `map_attribute[key]`, leaving sibling keys alone."""

    return Expression(
        text="SET #map.#key = :value",
        names={"#map": map_attribute, "#key": key},
        values={":value": value},
    )


def remove_nested(map_attribute: str, key: str) -> Expression:
    """REMOVE `map_attribute[key]`; DynamoDB treats a missing key as a no-op."""

    return Expression(text="REMOVE #map.#key", names={"#map": map_attribute, "#key": key})


def nested_key_exists(map_attribute: str, key: str) -> Expression:
    return Expression(text="attribute_exists(#map.#key)", names={"#map": map_attribute, "#key": key})


def attribute_exists(attribute: str) -> Expression:
    return Expression(text="attribute_exists(#pk)", names={"#pk": attribute})


def attribute_not_exists(attribute: str) -> Expression:
    return Expression(text="attribute_not_exists(#pk)", names={"#pk": attribute})


def merge(update: Expression, condition: Expression) -> Dict[str, Any]:
    """Combine an update with a condition into one `update_item` parameter set."""

    params = update.as_update()
    params["ConditionExpression"] = condition.text
    names = dict(params.get("ExpressionAttributeNames", {}))
    names.update(condition.names)
    if names:
        params["ExpressionAttributeNames"] = names
    values = dict(params.get("ExpressionAttributeValues", {}))
    values.update(condition.values)
    if values:
        params["ExpressionAttributeValues"] = values
    return params
