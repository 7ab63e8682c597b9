"""Service layer package for the Notention desktop client.

Collaborators the views and the editor adapter depend on only through a small
interface: the AI helper (auto-tagging and summaries) and the confirmation
prompt used before destructive actions.
"""
