"""
Service Layer

HTTP surface of the pipeline engine. Contains:
- validator: FastAPI DAG validation service
- adapters: client for submitting pipelines to the validator
"""
