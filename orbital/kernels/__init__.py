"""
Kernel layer.

Integer-only math shared by the pool, quoter and router. Nothing in here holds
state or logs; every function is deterministic in its arguments.
"""
