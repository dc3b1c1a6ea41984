"""tasksync: offline-resilient data layer for a multi-tenant task tracker."""

__version__ = "0.1.0"
