# =======================================================================================
# rfid_gate/__init__.py - Package Initialization
# =======================================================================================
"""
RFID Gate Access Bridge

Bridges the serial RFID readers of a gated community (vehicle and walk-in
entry/exit plus badge enrollment) to the resident document store: one
deterministic access decision and audit trail per scan.
"""

__version__ = "1.0.0"
__author__ = "RFID Access Control Team"
