import enum
from decimal import Decimal
from sqlalchemy.orm import class_mapper

def sqlalchemy_to_dict(obj):
    """Convert a SQLAlchemy object to a JSON-friendly dictionary."""
    if not obj:
        return None
    mapper = class_mapper(obj.__class__)
    result = {}
    for c in mapper.columns:
        value = getattr(obj, c.key)
        # Convert date/datetime objects to ISO format strings
        if hasattr(value, 'isoformat'):
            value = value.isoformat()
        elif isinstance(value, Decimal):
            value = float(value)
        elif isinstance(value, enum.Enum):
            value = value.value
        result[c.key] = value
    return result

def split_tags(value):
    """Tags are stored as one comma separated string."""
    if not value:
        return []
    return [tag.strip() for tag in value.split(',') if tag.strip()]

def join_tags(tags):
    if not tags:
        return None
    return ",".join(tag.strip() for tag in tags if tag and tag.strip())

__all__ = ['join_tags', 'split_tags', 'sqlalchemy_to_dict']
