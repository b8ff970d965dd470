"""
Pydantic models for products and invoices.

Models are mutable: stores write generated identifiers back onto the same
instances the caller passed in, so an invoice's header and items carry their
ids once the invoice has been created.
"""

from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d") if value else ""


class ProductModel(BaseModel):
    """Product row."""

    id: int = Field(0, ge=0, description="Database ID, 0 until stored")
    name: str = Field(..., min_length=1, max_length=25, description="Product name")
    observations: str = Field("", max_length=100, description="Free-text observations")
    price: int = Field(..., description="Product price")

    # Timestamps
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate product name."""
        if not v.strip():
            raise ValueError('Product name cannot be empty')
        return v.strip()

    @field_validator('observations', mode='before')
    @classmethod
    def validate_observations(cls, v: Optional[str]) -> str:
        """NULL observations come back from the database as an empty string."""
        if v is None:
            return ""
        return v

    def __str__(self) -> str:
        return (
            f"{self.id:02d} | {self.name:<20} | {self.observations:<20} | "
            f"{self.price:5d} | {_format_date(self.created_at):>10} | "
            f"{_format_date(self.updated_at):>10}"
        )


class InvoiceHeaderModel(BaseModel):
    """Invoice header row."""

    id: int = Field(0, ge=0, description="Database ID, 0 until stored")
    client: str = Field(..., min_length=1, max_length=100, description="Client name")
    created_at: Optional[datetime] = Field(None, description="Set by the database on insert")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    @field_validator('client')
    @classmethod
    def validate_client(cls, v: str) -> str:
        """Validate client name."""
        if not v.strip():
            raise ValueError('Client name cannot be empty')
        return v.strip()


class InvoiceItemModel(BaseModel):
    """Invoice item row, referencing its header and a product."""

    id: int = Field(0, ge=0, description="Database ID, 0 until stored")
    invoice_header_id: int = Field(0, ge=0, description="Owning invoice header ID")
    product_id: int = Field(..., ge=0, description="Referenced product ID")


class InvoiceModel(BaseModel):
    """
    An invoice as the caller builds it: one header and its items.

    Never stored as a row of its own. Item order is the order in which the
    items are inserted and receive their ids.
    """

    header: InvoiceHeaderModel
    items: List[InvoiceItemModel] = Field(default_factory=list)
