# api/v1/schemas/products.py
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional

from app.domain.models.product import SeedResult

class ProductOut(BaseModel):
    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    price: int
    badge: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class SeedOut(BaseModel):
    success: bool
    results: List[SeedResult] = Field(default_factory=list)
    error: Optional[str] = None
