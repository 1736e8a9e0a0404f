"""docgov: approval workflow for organizational documents, tasks and policies."""

__version__ = "0.1.0"
