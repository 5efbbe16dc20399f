"""Shared types, constants, errors and logging setup."""
