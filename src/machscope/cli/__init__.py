"""
Machscope Command-Line Interface
================================

This package provides the command-line tools for machscope:

- **msdisasm**: annotated disassembly of a live process or a snapshot

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["msdisasm"]
