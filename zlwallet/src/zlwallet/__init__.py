"""
zlwallet - Zcash wallet layer with zero-link input selection

Talks to a zcashd node over JSON-RPC; input selection comes from zlcore.
"""

__version__ = "0.1.0"
