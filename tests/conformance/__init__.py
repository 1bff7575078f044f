"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the share ledger.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. conservation.py - Total supply is fixed per asset
2. atomicity.py - All-or-nothing operations, including payment failure
3. reentrancy.py - Guarded operations cannot nest
4. ownership.py - Holder history, owners and ranking stay consistent

These tests use hypothesis for property-based testing.
"""
