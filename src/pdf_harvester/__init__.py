"""Find, preview and bundle PDF documents linked from a web page."""

__version__ = "0.1.0"
