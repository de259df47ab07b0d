"""Voice turn controller for spoken mock interviews."""

__version__ = "0.1.0"
