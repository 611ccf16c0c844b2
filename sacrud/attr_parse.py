import datetime
import sacrud
import sqlalchemy

TRUE_VALUES = ("true", "1", "yes", "on")
FALSE_VALUES = ("false", "0", "no", "off")
NULL_VALUE = "null"
# range of the (64 bit) database integer types
MIN_INT = -(2**63)
MAX_INT = 2**63 - 1


def parse_bool(attr_val):
    """
    :param attr_val: query string or json value
    :return: boolean
    """
    if isinstance(attr_val, bool):
        return attr_val
    if isinstance(attr_val, int):
        return bool(attr_val)
    value = str(attr_val).strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean value {attr_val}")


def parse_int(attr_val):
    """
    :param attr_val: query string or json value
    :return: integer in the database integer range
    """
    value = int(attr_val)
    if not MIN_INT <= value <= MAX_INT:
        raise ValueError(f"Integer value out of range {attr_val}")
    return value


def parse_attr(column, attr_val):
    """
    Parse the supplied `attr_val` so it can be compared with or saved in the SQLAlchemy `column`
    Query string values are always strings, json values may already have the right type

    :param column: SQLAlchemy column
    :param attr_val: request value
    :return: processed value
    :raises ValueError, TypeError: if the value can't be converted
    """
    if attr_val is None:
        return attr_val

    try:
        python_type = column.type.python_type
    except NotImplementedError as exc:
        # This happens when a custom type has been implemented, in which case the developer should know how to handle it
        sacrud.log.debug(exc)
        return attr_val

    # skip type coercion on JSON columns, since they could be anything
    if isinstance(column.type, sqlalchemy.types.JSON):
        return attr_val

    if python_type is bool:
        return parse_bool(attr_val)

    if python_type is int:
        return parse_int(attr_val)

    if isinstance(attr_val, python_type):
        return attr_val

    # Parse the ISO 8601 representations of datetime, date and time values
    if python_type is datetime.datetime:
        attr_val = datetime.datetime.fromisoformat(str(attr_val))
    elif python_type is datetime.date:
        attr_val = datetime.date.fromisoformat(str(attr_val))
    elif python_type is datetime.time:
        attr_val = datetime.time.fromisoformat(str(attr_val))
    else:
        attr_val = python_type(attr_val)

    return attr_val


def parse_query_value(column, attr_val):
    """
    Parse a filter value from the query string, the literal "null" is parsed to None

    :param column: SQLAlchemy column
    :param attr_val: query string value
    :return: processed value
    """
    if isinstance(attr_val, str) and attr_val == NULL_VALUE:
        return None
    return parse_attr(column, attr_val)
