"""Conversational command interpretation.

The intent layer turns a free-form chat message plus a snapshot of the user's banks and ledger into
exactly one `ExecutionResult`: a reply and at most one effect for the store to apply.
"""
