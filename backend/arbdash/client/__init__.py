"""
Client data-fetch layer: HTTP accessors, polling and display helpers.
"""
from .api_client import DashboardClient
from .polling import QueryScheduler, build_dashboard_queries

__all__ = ["DashboardClient", "QueryScheduler", "build_dashboard_queries"]
