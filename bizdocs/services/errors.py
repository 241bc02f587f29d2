"""
Domain errors raised out of the document engine.
"""


class DocumentGenerationError(RuntimeError):
    """A document could not be produced; no partial output exists."""


class LedgerImbalanceError(DocumentGenerationError):
    """Running balances or final totals failed to reconcile."""
