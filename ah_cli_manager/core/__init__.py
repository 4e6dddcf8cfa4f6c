"""
Core engine for running Aura Helper CLI operations.

The `CLIManager` (in `core.manager`) coordinates every operation: it holds the
operation gate and process registry (`state`), relays progress and abort
events (`events`), prepares inputs (`transformer`) and normalizes the tool's
responses (`responses`).
"""
