"""
Restaurant dataset import.

Responsibilities:
- Read the public NYC restaurants dataset (MongoDB extended JSON lines).
- Normalize it into the canonical restaurant document shape.
- Bulk-insert the cleaned documents into the configured collection.
"""
