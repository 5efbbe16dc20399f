"""HTTP service exposing the sync engine."""
