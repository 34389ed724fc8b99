"""
Codex - Schema-driven decoding of contract state.

Provides the binary reader/writer, decoded value projections, and the
lazily decoded StateMap. Everything here is synchronous and performs
no I/O.
"""
