"""Stuck-transaction reconciler for the certificate reseller ledger."""
