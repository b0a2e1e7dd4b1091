"""HTTP API for rendering schema graphs."""
