"""
Wallet session, intent evaluation and execution.
"""
