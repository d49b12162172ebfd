import uuid

from pharmacy.exceptions import InvalidInput


def parse_id(value, field: str) -> uuid.UUID:
    """Return ``value`` as a UUID or raise :class:`InvalidInput`."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidInput(f'Invalid {field} format.', details={field: ['Must be a valid UUID.']})


def is_whole_number(value) -> bool:
    # bool is an int subclass but never a quantity
    return isinstance(value, int) and not isinstance(value, bool)
