"""ERP sync subsystem -- reconcilers, pass orchestration, and scheduling.

Provides the store interfaces the reconcilers write through, field
ownership rules for buildings, per-kind reconcilers (upsert for buildings,
full refresh for the acquisition pipeline doctypes), SyncOrchestrator for
one pass of one kind, and ERPSyncScheduler for the repeating schedule.
"""
