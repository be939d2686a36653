"""Registry — the symbol namespace for token definitions.

The registry provides:
- Storage: an insert-if-absent mapping from symbol to TokenRecord
- Authorization: only administrators may register symbols
- Audit: every successful registration emits a ``token-created`` event
"""
