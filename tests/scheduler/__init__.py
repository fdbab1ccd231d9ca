"""
Scheduler Test Suite.

- Job entry due/next-run rules
- Scheduler tick ordering, failure isolation and idle notifications
- Chain sync pipeline ordering and abort semantics
- Store adapter behavior
"""
