"""Reconciliation steps for clusters, nodes and services.

Each step takes the deploy context and one configured entity, reads or
changes remote state through the API client, and records what it observed
on the entity. Steps whose precondition is already satisfied return early.
"""
