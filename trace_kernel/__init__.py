"""
Trace Kernel - lot genealogy and traceability store

A small, transactional kernel for food-production traceability with:
- Deterministic lot code generation (year/month/elaboration/sequence)
- Atomic lot creation together with its composition entries
- Parent/child lot genealogy
- Write-once lot codes and elaboration names
"""

__version__ = "0.1.0"
