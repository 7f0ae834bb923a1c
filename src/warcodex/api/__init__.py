"""HTTP API for warcodex."""
