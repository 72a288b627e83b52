"""
Core modules for the paid agent.

This package contains the spend ledger, decision policy, workflow
orchestration and spending reports.
"""
