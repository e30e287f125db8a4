"""
Shared compute infrastructure for PyAFT.

Submodules:
    timing: Execution timing utilities
"""
