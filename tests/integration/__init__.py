"""HTTP-level integration tests."""
