"""
Pipeline Engine

Graph model, evaluation and runtime for visually assembled pipelines. Contains:
- dag: node/edge model, graph store, dependency ordering, node registry
- scheduler: evaluation passes and deferred recompute
- runtime: coordinator tying store, evaluation and variable editing together
- config: YAML settings and pipeline definitions
"""
