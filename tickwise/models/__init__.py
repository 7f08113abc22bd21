"""Pydantic value types: daily bars, the score ledger and the final snapshot."""
