"""
Internship Placement Engine
Coordinates internship opportunities, student applications and placement slots.

Architecture:
- Allocation engine: all state-changing commands (submit, approve, accept, withdraw)
- Query service: read-only listings, filters and statistics
- Stores: in-memory opportunity/application stores keyed by ID
- SQL persistence: bulk load at startup, bulk save at shutdown
"""

__version__ = "1.0.0"
