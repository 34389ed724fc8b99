"""
Commands - CLI command implementations for Augury.

Each module corresponds to a top-level CLI command:
- chains: List known chains
- state:  Decode contract state fields
- tree:   Read an AVL tree in bulk or by key
- call:   One read-only contract call
- batch:  Several read-only calls in one round trip
"""
