"""JSON HTTP surface for the ledger services."""
