#
# Default validator: checks a candidate instance against its column definitions
#
from typing import Any, List, Set

from sqlalchemy import Column, inspect as sqla_inspect
from sqlalchemy.orm.interfaces import MANYTOONE


def _assigned_fk_columns(instance: Any, mapper) -> Set[Column]:
    # foreign keys of assigned many-to-one relationships are set on flush
    result: Set[Column] = set()
    for rel in mapper.relationships:
        if rel.direction is MANYTOONE and getattr(instance, rel.key) is not None:
            result.update(rel.local_columns)
    return result


def validate_instance(instance: Any) -> List[str]:
    """
    :param instance: sqla mapped instance
    :return: names of the invalid fields:
        - required columns (not nullable, no default, not autoincremented) without a value
        - string values exceeding the column length
    """
    mapper = sqla_inspect(type(instance))
    assigned_fks = _assigned_fk_columns(instance, mapper)
    errors: List[str] = []
    for col_attr in mapper.column_attrs:
        column = col_attr.columns[0]
        if not isinstance(column, Column):
            continue
        value = getattr(instance, col_attr.key)
        if value is None:
            if column.nullable or column in assigned_fks:
                continue
            if column.default is not None or column.server_default is not None:
                continue
            if column.primary_key and column.autoincrement in (True, "auto"):
                continue
            errors.append(col_attr.key)
            continue
        length = getattr(column.type, "length", None)
        if length and isinstance(value, str) and len(value) > length:
            errors.append(col_attr.key)
    return errors
