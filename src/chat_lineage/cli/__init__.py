"""Command-line interface for chat-lineage."""
