from __future__ import annotations


class DocumentError(RuntimeError):
    pass


class ValidationError(DocumentError):
    """Request is malformed or incomplete; raised before anything is written."""


class PathConflict(DocumentError):
    """Route path collides with an existing route or breaks the path rules."""


class DocumentNotFound(DocumentError):
    pass
