"""
Documents module: path-addressed content with draft/current versioning.

- Routes are write-once; renaming a document adds a route and the old one becomes a redirect
- Records are immutable snapshots; every content change creates a new record and deletes
  the one it replaces
- A document can carry a published (current) record and an in-progress draft at the same time
"""
