"""
Tree Planner

Hierarchical task planning service. Plans own a forest of tasks; the service
keeps parent/child links consistent, rolls completion up the tree and reports
progress through MCP tools and a FastAPI HTTP API.
"""

__version__ = "1.0.0"
