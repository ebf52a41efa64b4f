"""
Kernel - models, identity, ownership, audit log and persistence.
"""
