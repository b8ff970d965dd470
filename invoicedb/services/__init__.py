"""
Service layer over the record stores.
"""

from .products import ProductService
from .invoices import InvoiceHeaderService, InvoiceItemService, InvoiceService

__all__ = ["ProductService", "InvoiceHeaderService", "InvoiceItemService", "InvoiceService"]
