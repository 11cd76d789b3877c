"""Shared building blocks: errors, constants, logging, protocols and types."""
