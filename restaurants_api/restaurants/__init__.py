"""
Restaurant data-access layer.

Responsibilities:
- Own the MongoDB connection lifecycle for the ``restaurants`` collection.
- Page, sort, filter and proximity-search restaurant documents.
- Append, update and remove comments and grades embedded in a restaurant.
- Raise domain errors that the API layer maps to HTTP responses.
"""
