"""HTTP adapter over the authorization core."""
