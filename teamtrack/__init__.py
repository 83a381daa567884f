"""
TeamTrack — multi-tenant project and task tracker core.

Role-based access control over projects and tasks, plus weekly report
aggregation with assistant-generated text.
"""

__version__ = "1.0.0"
__all__ = ["engine", "db", "store", "security", "services", "reports", "integrations"]
