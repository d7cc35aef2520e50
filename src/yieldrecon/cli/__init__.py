"""
Command Line Interface Package

Command Structure:
- yieldrecon: Main entry point with utility commands (version, config)
- yieldrecon history: Summaries, audit trails, statements and deposited values
- yieldrecon ledger: Manual deposit ledger maintenance
"""
