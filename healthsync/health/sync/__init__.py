"""Sync infrastructure for HealthSync.

Modules:
    transport - POST the payload with bearer auth and classify the outcome
    service   - One-shot read → build → send workflow
"""
