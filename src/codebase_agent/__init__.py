"""
codebase-agent: drives a tool-using LLM over a local codebase.
"""

__version__ = "0.1.0"
