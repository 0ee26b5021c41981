"""PIM Composer.

Product composition and stock reconciliation engine: product types,
variant matrices, bundle graphs, grouped sets and atomic stock operations.
"""

__version__ = "0.1.0"
