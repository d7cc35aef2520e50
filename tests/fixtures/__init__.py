"""
Test Fixtures and Utilities

Shared synthetic transfer histories and explorer responses.

All addresses and hashes are synthetic and do not refer to real wallets.
"""
