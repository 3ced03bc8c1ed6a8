"""
Pure domain core: no I/O, no sessions.

Clock, the transaction-type variant, DTOs, and the buildability, forecast
and FEFO computations all live here so they can be tested without a
database.
"""
