"""
Catalog Media - Media Gallery Reconciliation

Finds catalog media files nobody references, gallery rows whose files are
gone, and cleans up either side on request.
"""

__version__ = "1.0.0"
