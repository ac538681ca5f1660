from beanie import PydanticObjectId
from bson import ObjectId


def parse_object_id(value: str | None) -> PydanticObjectId | None:
    """Return an ObjectId for a 24-hex string, None for anything else.

    ObjectId.is_valid also accepts any 12-character string as raw bytes, so the
    length check keeps ids like "inv_17000000" from being treated as ObjectIds.
    """
    if not value or len(value) != 24 or not ObjectId.is_valid(value):
        return None
    return PydanticObjectId(value)
