"""Demand Sheet OCR Service.

Turns photographed demand sheets into structured (date, store, item,
quantity) rows using Google Document AI and appends them to a shared
Google Sheet.
"""

__version__ = "1.0.0"
