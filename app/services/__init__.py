"""Outbound integrations for Post Dispatch."""
