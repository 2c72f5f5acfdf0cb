"""
Scheduling core

- Interval model and overlap rules (interval.py)
- Slot grid and conflict detection (availability.py)
"""
