"""School records consistency-and-ledger package.

Organized by feature modules (audit, attendance, integrity, ...) with a thin
Flask controller layer over service/repository layers.
"""
