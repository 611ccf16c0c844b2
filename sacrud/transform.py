# -*- coding: utf-8 -*-
#
# Convert request body data to model attribute values:
# - column values are parsed to the column python type
# - relationship values are converted to related instances:
#     object payload  -> new related instance (its fields are converted recursively)
#     integer payload -> related instance fetched by id
#     anything else   -> passed unchanged
#
from typing import Any, Dict, List, Mapping, Type

import sacrud
from .attr_parse import MAX_INT, MIN_INT, parse_attr
from .errors import ValidationError
from .relations import FieldInfo, RelationKind, resolve_field


def _is_id(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


async def _related_instance(field: FieldInfo, value: Any, storage: Any) -> Any:
    if isinstance(value, dict):
        return await build_instance(field.target, value, storage)
    if _is_id(value):
        instance = await storage.get(field.target, value) if MIN_INT <= value <= MAX_INT else None
        if instance is None:
            raise ValidationError([field.name])
        return instance
    return value


async def _to_one(field: FieldInfo, value: Any, storage: Any) -> Any:
    return await _related_instance(field, value, storage)


async def _to_many(field: FieldInfo, value: Any, storage: Any) -> Any:
    if not isinstance(value, (list, tuple)):
        return value
    return [await _related_instance(field, item, storage) for item in value]


TRANSFORMERS = {
    RelationKind.MANY_TO_ONE: _to_one,
    RelationKind.ONE_TO_ONE: _to_one,
    RelationKind.ONE_TO_MANY: _to_many,
    RelationKind.MANY_TO_MANY: _to_many,
}


async def transform_data(model: Type[Any], data: Mapping[str, Any], storage: Any) -> Dict[str, Any]:
    """
    :param model: sqla mapped class
    :param data: request body dict
    :param storage: storage handle used to fetch related instances by id
    :return: dict of attribute name -> value, keys that aren't fields of the model are dropped
    :raises ValidationError: naming the fields that couldn't be converted
    """
    result: Dict[str, Any] = {}
    invalid: List[str] = []
    for name, value in data.items():
        field = resolve_field(model, name)
        if field is None:
            sacrud.log.debug(f"Ignoring {model.__name__}.{name}: not a field")
            continue
        if not field.is_relation:
            try:
                result[name] = parse_attr(field.column, value)
            except (ValueError, TypeError, ArithmeticError):
                invalid.append(name)
            continue
        if value is None:
            result[name] = None
            continue
        try:
            result[name] = await TRANSFORMERS[field.kind](field, value, storage)
        except ValidationError:
            invalid.append(name)
    if invalid:
        raise ValidationError(invalid)
    return result


def assign_fields(instance: Any, data: Mapping[str, Any]) -> Any:
    """
    Set the converted values on the instance
    :raises ValidationError: naming the fields that couldn't be assigned, f.i. a string for a relationship
    """
    invalid = []
    for name, value in data.items():
        try:
            setattr(instance, name, value)
        except (AttributeError, TypeError, ValueError):
            invalid.append(name)
    if invalid:
        raise ValidationError(invalid)
    return instance


async def build_instance(model: Type[Any], data: Mapping[str, Any], storage: Any) -> Any:
    """
    Create a new (transient) `model` instance from a body dict
    """
    values = await transform_data(model, data, storage)
    return assign_fields(model(), values)
