"""
Validator Service

Reports node count, edge count and acyclicity of submitted pipelines.
"""

from .main import app, create_app, analyze_pipeline, analyze_adjacency

__all__ = ["app", "create_app", "analyze_pipeline", "analyze_adjacency"]
