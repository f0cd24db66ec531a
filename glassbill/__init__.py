"""Quotation, invoice and payment backend for glass fabrication shops."""

__version__ = "1.0.0"
