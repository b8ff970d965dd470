"""
invoicedb - products and invoices over MySQL or PostgreSQL.
"""
