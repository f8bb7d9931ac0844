"""HTTP and WebSocket surface for the session orchestrator."""
