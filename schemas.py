"""
Database Schemas for YelpCamp

Each Pydantic model represents a MongoDB collection or the payload that
creates one of its documents.
- Campground -> "campgrounds"
- Review -> "reviews"

The *In models are the submission schemas checked by the validation stage;
unknown fields are rejected.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError
from typing import List, Optional


def _reject_bool(value):
    # lax mode would read true/false as 1/0
    if isinstance(value, bool):
        raise PydanticCustomError("bool_not_number", "must be a number")
    return value


class CampgroundIn(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str = Field(..., min_length=1, description="Campground name")
    location: str = Field(..., min_length=1, description="City, state or region")
    price: float = Field(..., ge=0, description="Nightly price")
    description: Optional[str] = Field(None, description="Free-form description")
    image: Optional[str] = Field(None, description="Image URL")

    @field_validator("price", mode="before")
    @classmethod
    def price_is_not_bool(cls, value):
        return _reject_bool(value)


class ReviewIn(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    rating: int = Field(..., ge=1, le=5, description="Rating 1-5")
    body: str = Field(..., min_length=1, description="Review text")

    @field_validator("rating", mode="before")
    @classmethod
    def rating_is_not_bool(cls, value):
        return _reject_bool(value)


class Review(BaseModel):
    id: str = Field(..., description="Review _id (string)")
    rating: int
    body: str


class Campground(BaseModel):
    id: str = Field(..., description="Campground _id (string)")
    title: str
    location: str
    price: float
    description: Optional[str] = None
    image: Optional[str] = None
    reviews: List[str] = Field(default_factory=list, description="Owned review _ids, in insertion order")


class PopulatedCampground(Campground):
    reviews: List[Review] = Field(default_factory=list)
