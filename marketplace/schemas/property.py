from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Literal, Optional

PROPERTY_TYPES: List[str] = [
    "Villa",
    "Penthouse",
    "Lodge",
    "Manor",
    "Oasis",
    "Cottage",
    "Apartment",
    "House",
]

ListingType = Literal["sale", "rent"]
PropertyStatus = Literal["pending", "approved", "booked"]


class PropertyDraft(BaseModel):
    """Editable listing fields, as submitted by the property form."""

    model_config = ConfigDict(populate_by_name=True)

    address: str
    city: str
    price: float
    rent_price: Optional[float] = Field(default=None, alias="rentPrice")
    bedrooms: int = 0
    bathrooms: float = 0
    area: float = Field(default=0, alias="sqft")
    description: str = ""
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")
    image_url_360: Optional[str] = Field(default=None, alias="imageUrl360")
    type: str
    listing_type: ListingType = Field(default="sale", alias="listingType")

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in PROPERTY_TYPES:
            raise ValueError(f"type must be one of {', '.join(PROPERTY_TYPES)}")
        return value


class Property(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    address: str
    city: str
    price: float
    rent_price: Optional[float] = Field(default=None, alias="rentPrice")
    bedrooms: int = 0
    bathrooms: float = 0
    area: float = Field(default=0, alias="sqft")
    description: str = ""
    image_urls: List[str] = Field(default_factory=list, alias="imageUrls")
    image_url_360: Optional[str] = Field(default=None, alias="imageUrl360")
    type: str
    listing_type: ListingType = Field(default="sale", alias="listingType")
    status: PropertyStatus = "pending"
    booked_by_user_id: Optional[int] = Field(default=None, alias="bookedByUserId")

    @model_validator(mode="after")
    def _booked_has_owner(self):
        if self.status == "booked" and self.booked_by_user_id is None:
            raise ValueError("a booked property must reference the booking user")
        return self

    @property
    def effective_price(self) -> float:
        # rent listings without a rent price filter as 0, never as the sale price
        if self.listing_type == "rent":
            return self.rent_price or 0
        return self.price
