"""ITSM work-item migration tool."""

__version__ = "0.1.0"
