"""
Replication subsystem for cross-region document synchronization.

The publish path forwards local changes to the ordered bus; the apply path
writes changes from other regions with last-writer-wins conflict resolution.
"""
