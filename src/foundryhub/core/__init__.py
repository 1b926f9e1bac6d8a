"""Core domain: enums, models, errors, interfaces."""
