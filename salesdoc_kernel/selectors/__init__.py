"""Selectors for the sales document kernel (read side)."""

from salesdoc_kernel.selectors.base import BaseSelector
from salesdoc_kernel.selectors.document_selector import DocumentSelector, DocumentStatus

__all__ = ["BaseSelector", "DocumentSelector", "DocumentStatus"]
