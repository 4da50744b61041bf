"""Transit permit card recognition and splitting.

Batch pipeline that rasterizes scanned permit-card PDFs, runs Tesseract
OCR on every page, recovers each card's identifier code and vehicle
plate, and re-splits the source document into one file per card.
"""
