"""
Settlement Kernel

Shared foundation for the invoice settlement engine:
- Immutable invoice and payment-history documents
- Decimal amount helpers with blank-vs-zero semantics
- Typed exceptions with machine-readable codes
- Structured JSON logging
"""

__version__ = "0.1.0"
