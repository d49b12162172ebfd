"""Pharmacy application for the clinic backend.

This package contains the inventory ledger: models, the transactional
dispensation service, reporting queries and the REST routes exposing them.
"""
