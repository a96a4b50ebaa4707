"""
Database Schemas

Pydantic models for the MongoDB collections used by the app.
Each model types the fields the service relies on; any other field a
client sends is kept in ``model_extra`` and stored as-is.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Document(BaseModel):
    """Base for stored records: typed known fields plus free-form extras."""

    model_config = ConfigDict(extra="allow")

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(exclude_unset=True)
        doc.update(self.model_extra or {})
        return doc


# Pet collection
class Pet(Document):
    name: str = Field(..., min_length=1, description="Pet name")
    category: str = Field(..., min_length=1, description="Category, e.g. dog or cat")
    owner_email: Optional[str] = Field(None, description="Email of the seller")
    price: Optional[float] = Field(None, description="Asking price; 0 when absent")


class PetUpdate(Document):
    name: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    owner_email: Optional[str] = None
    price: Optional[float] = None

    @field_validator("name", "category")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


# Order collection
class Order(Document):
    productId: str = Field(..., min_length=1, description="Referenced pet _id as string")
    buyerName: str = Field(..., min_length=1, description="Buyer full name")
    price: Optional[float] = Field(None, description="Unit price; defaults to the pet's price")
    quantity: Optional[int] = Field(None, description="Quantity ordered; defaults to 1")
    address: Optional[str] = None
    phone: Optional[str] = None
    additionalNotes: Optional[str] = None
    email: Optional[str] = Field(None, description="Buyer email, used to list a buyer's orders")


class OrderUpdate(Document):
    productId: Optional[str] = Field(None, min_length=1)
    buyerName: Optional[str] = Field(None, min_length=1)
    productName: Optional[str] = None
    price: Optional[float] = None
    quantity: Optional[int] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    additionalNotes: Optional[str] = None
    email: Optional[str] = None

    @field_validator("productId", "buyerName")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("may not be null")
        return v


# Write results, mirroring pymongo's result objects
class InsertResult(BaseModel):
    acknowledged: bool
    insertedId: str


class UpdateResult(BaseModel):
    acknowledged: bool
    matchedCount: int
    modifiedCount: int


class DeleteResult(BaseModel):
    acknowledged: bool
    deletedCount: int
