# sacrud to json encoding
#
# Only loaded attributes are serialized: serialization never triggers a lazy load,
# which would fail for async sessions and cause n+1 queries for sync sessions
#
import base64
import datetime
import decimal
from enum import Enum
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import inspect as sqla_inspect

from .relations import field_index


def jsonable(value: Any) -> Any:
    """
    Convert a column value to a json compatible value
    :param value: column value
    :return: json value
    """
    if value is None:
        return None
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, datetime.timedelta):
        return str(value)
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return value


def _columns_dict(instance: Any) -> Dict[str, Any]:
    unloaded = sqla_inspect(instance).unloaded
    return {
        name: jsonable(getattr(instance, name))
        for name, field in field_index(type(instance)).items()
        if not field.is_relation and name not in unloaded
    }


def to_dict(instance: Any, fields: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Create a dictionary with the instance column values and its loaded relationships:
    to-one relationships are nested dicts, to-many relationships lists of dicts

    :param instance: sqla mapped instance
    :param fields: names of the fields to serialize, all loaded fields if not set
    :return: dict, fields that aren't loaded are null
    """
    unloaded = sqla_inspect(instance).unloaded
    index = field_index(type(instance))
    names = list(fields) if fields else [name for name in index if name not in unloaded]
    result: Dict[str, Any] = {}
    for name in names:
        field = index.get(name)
        if field is None or name in unloaded:
            result[name] = None
            continue
        value = getattr(instance, name)
        if not field.is_relation:
            result[name] = jsonable(value)
        elif value is None:
            result[name] = None
        elif field.is_to_many:
            result[name] = [_columns_dict(item) for item in value]
        else:
            result[name] = _columns_dict(value)
    return result
