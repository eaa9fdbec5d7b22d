import uuid
from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

def _new_id() -> str:
    return str(uuid.uuid4())

class Category(BaseModel):
    """User-defined group of to-do items."""
    id: str = Field(default_factory=_new_id)
    name: str = Field(..., description="Display name")

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Category name cannot be empty.")
        return value

class ToDoItem(BaseModel):
    """A single to-do item. `done` and `favorite` are independent flags."""
    id: str = Field(default_factory=_new_id)
    title: str = Field(..., description="Primary title (required)")
    subtitle: Optional[str] = Field(None, description="Optional notes")
    timestamp: datetime = Field(default_factory=datetime.now, description="Creation time")
    done: bool = False
    favorite: bool = False
    category_id: Optional[str] = None
    category_name: Optional[str] = Field(None, description="Resolved by the store on fetch")

    @field_validator("title")
    @classmethod
    def _title_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Title field cannot be empty.")
        return value

class Bookmark(BaseModel):
    """A saved link."""
    id: str = Field(default_factory=_new_id)
    name: str
    url: str

    @model_validator(mode="after")
    def _require_name_and_url(self):
        if not self.name and not self.url:
            raise ValueError("Please fill in both the name and URL fields before adding a new bookmark.")
        if not self.name:
            raise ValueError("Please fill in the name before adding a new bookmark.")
        if not self.url:
            raise ValueError("Please fill in the URL before adding a new bookmark.")
        return self

class SearchResult(BaseModel):
    """One curated entry on the search page. The id is generated locally, never read from the catalog file."""
    id: str = Field(default_factory=_new_id)
    name: str
    description: str

# Catalog adverts all carry the same display date
ADVERT_DATE = datetime(2023, 1, 1, tzinfo=timezone.utc)

class AdvertConfiguration(BaseModel):
    """A synthetic promoted entry shown between tasks. Never persisted."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    date: datetime = ADVERT_DATE
    title: str
    description: str
