"""
Spec - Type schema vocabulary for contract state.

Provides TypeSpec definitions, the named-type registry, and the loader
for JSON type definitions extracted from contract interface artifacts.
"""
