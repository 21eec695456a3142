"""FluxaPay Payment Monitor.

Watches the Stellar ledger for payments to pending invoice addresses and
settles them.
"""

__version__ = "0.1.0"
