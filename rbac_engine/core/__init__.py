"""Core configuration, errors, logging and interfaces."""
