"""Orchestrator backends exposing get_replicas() and set_replicas(count)."""
