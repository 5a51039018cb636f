"""
Plan Orchestrator - Checkpointable weekly plan generation.

This package provides:
- llm: Completion client with provider fallback chain and JSON extraction
- plans: Profile/artifact models, schema validation, verifiers, fallback plans
- builders: Per-artifact stage builders (prompt -> completion -> extract -> validate)
- checkpoints: Checkpoint model and Firestore / in-memory stores
- daily: Daily adjustment from check-ins and the trend memory layer
- jobs: Firestore-backed plan generation job queue

Entry points:
- app/api.py: generate_weekly_plan() / generate_daily_adjustment()
- workers/plan_worker.py: Cloud Run Job worker
- cli.py: Local command line driver
"""
