"""
Timelock Kernel

A delayed-execution authorization engine with:
- A single, immutable administrator set once at bootstrap
- Mandatory minimum delay between queueing and execution
- Deterministic lifecycle state (Unknown / Pending / Ready)
- At-most-once execution, never before the scheduled time
- Pluggable clock, durable store, authority check and notification log
"""

__version__ = "0.1.0"
