"""Test suite for the report form session engine.

This package contains tests for:
- Field models and their dict serialization
- Validation engine (required fields, "other" category coupling)
- Field store (copy-on-write edits, visibility coupling, snapshot restore)
- Tabs, one-time events and the load state machine
- Raw schema conversion and prefill merging
- Study models, session config and the in-memory repository
- Session controller scenarios (inactive study, recording-only, submit, prefill)
"""
