"""Returns Workflow Builder backend.

Visual authoring of returns-processing workflow rules: graph model,
validation, layout and persistence.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
