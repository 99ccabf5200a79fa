"""Core services: orchestration that only depends on core contracts."""
