"""Discord archive manager and Bedrock script checker."""

__version__ = "0.1.0"
