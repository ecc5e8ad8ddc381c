"""
TaskFlow MCP Server

Drives a configured user's TaskFlow projects and tasks from an MCP client.
"""

__version__ = "0.1.0"
