"""
Services module - Orchestrator and its collaborators.
"""
