"""DAG Execution Engine.

Dependency-graph execution with parallel batches, result caching and
bottleneck analysis.
"""

from dag_engine import db

__version__ = "0.1.0"

__all__ = [
    "db",
    "__version__",
]
