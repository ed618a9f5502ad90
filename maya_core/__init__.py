"""Shared logging and tracing setup for the MAYA analytics service."""
