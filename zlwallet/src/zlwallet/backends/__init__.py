"""
Zcash node backend implementations.

Available backends:
- ZcashdBackend: Full node via zcashd JSON-RPC (node wallet holds the keys)
"""

from zlwallet.backends.base import (
    InitializationStatus,
    NodeBackend,
    NodeReindexingError,
    NodeRPCError,
    OperationStatus,
)
from zlwallet.backends.zcashd import ZcashdBackend

__all__ = [
    "InitializationStatus",
    "NodeBackend",
    "NodeReindexingError",
    "NodeRPCError",
    "OperationStatus",
    "ZcashdBackend",
]
