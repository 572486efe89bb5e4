"""HTTP API for BlockCanvas."""
