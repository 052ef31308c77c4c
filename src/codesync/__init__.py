"""codesync: reconcile locally edited UI components with generated code."""

__version__ = "0.1.0"
