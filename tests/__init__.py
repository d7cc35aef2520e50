"""
Test Suite for yieldrecon

Test Structure:
- fixtures/: Shared synthetic transfer histories
- unit/: Unit tests mirroring src/ package structure
- integration/: CLI and configuration workflow tests

Test Categories:
- Core utilities (currency, money, dates, models, config)
- Transfer classification and fee matching
- Reconciliation, arbitration, audit trails and statements
- Deposit ledger

Test Data:
All addresses, hashes and amounts are synthetic. No network access is needed.
"""
