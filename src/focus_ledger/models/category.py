"""Category model for labelling tracked time."""

import uuid

from pydantic import BaseModel, Field


class Category(BaseModel):
    """A user-defined label that sessions can be tagged with."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
