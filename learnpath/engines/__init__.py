"""
Engines - domain logic on top of the kernel.
"""
