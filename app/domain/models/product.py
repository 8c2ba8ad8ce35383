from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime

class Product(BaseModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: int = Field(ge=0)  # smallest currency unit (rupiah)
    badge: Optional[str] = None
    embedding: Optional[List[float]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"frozen": True}  # immuable = safe

class MatchedProduct(BaseModel):
    """Product row returned by the similarity-search RPC, scored against the query."""
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: int = Field(ge=0)
    badge: Optional[str] = None
    similarity: float = Field(ge=0.0)
    model_config = {"frozen": True} # immuable = safe

    @field_validator("similarity")
    @classmethod
    def _cap_similarity(cls, v: float) -> float:
        # cosine of unit vectors can overshoot 1.0 by float error
        return min(v, 1.0)

class ProductSeed(BaseModel):
    name: str
    description: str
    price: int = Field(ge=0)
    badge: Optional[str] = None
    model_config = {"frozen": True} # immuable = safe

class SeedResult(BaseModel):
    name: str
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None
