"""Core primitives shared across adapters, engines and the orchestrator."""
