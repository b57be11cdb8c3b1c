"""Services Layer — imperative shell around the pure checks in core/.

Invariants:
    - Services take an AsyncSession and own the commit; routes never commit
    - Every state transition writes its notifications and activity log in the same commit
    - Failures are raised as VentureNetError subclasses, never returned

Design Decisions:
    - One module per resource family for locality
"""
