"""Core wager mathematics for the Bet Ledger.

This package contains pure building blocks with no I/O:

- ``bet_types``  — kind / direction enums and the injectable bet-type catalog
- ``ev_math``    — expected-value estimation against a reference price
- ``settlement`` — realised return and settlement field updates
- ``errors``     — domain exceptions raised by the engine and the store

Nothing in this package imports from ``backend.services`` or ``backend.models``.
All modules are side-effect-free and unit-testable in isolation.
"""
