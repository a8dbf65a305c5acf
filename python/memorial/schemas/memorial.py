"""Memorial-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel


class MemorialOut(BaseModel):
    """A memorial as seen by a particular viewer.

    ``role`` and ``reason`` come from the access resolver, not
    from the memorial row.
    """

    id: UUID
    creator_id: UUID
    memorial_type: str
    first_name: str
    last_name: str | None
    display_name: str
    privacy_level: str
    role: str
    reason: str
