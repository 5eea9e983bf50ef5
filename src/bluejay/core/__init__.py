"""
Bluejay core: token contracts, vesting ledger, configuration and logging.
"""
