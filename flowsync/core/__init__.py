"""Core configuration, logging and exception modules."""
