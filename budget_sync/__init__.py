"""
Budget Sync - Source Package

The non-UI core of a personal budget tracker that keeps its data
locally and mirrors it to a spreadsheet-backed HTTP endpoint.

DESIGN PRINCIPLES:
1. Local first: a local save is never rolled back by a remote failure
2. The remote backend is not type-safe, so decoding never trusts a field
3. One bad row never sinks a batch
4. Remote failures are reported, never fatal
5. Storage and endpoint are injected, never global
"""

__version__ = "1.0.0"
__author__ = "Budget Sync Team"
