"""
Backoffice Kernel

The invariant-guarding core of the payroll and general-ledger engine:
- Validated double-entry posting (one chokepoint for balanced journals)
- Typed, coded exceptions
- Structured JSON logging
- Injected session and clock (no global store handle)
"""

__version__ = "0.1.0"
