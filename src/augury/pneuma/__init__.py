"""
Pneuma - Remote read layer for Augury.

Provides the JSON-RPC and state-reader transports, the batch aggregator,
the AVL tree accessor, chain resolution, and read-only contract instances.

Uses httpx + eth-abi; nothing here signs or sends transactions.
"""
