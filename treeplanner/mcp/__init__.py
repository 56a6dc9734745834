"""
MCP (Model Context Protocol) Server Package

This package implements the in-process MCP tool registry through which
agents create plans, add tasks and move tasks through their statuses.
"""
