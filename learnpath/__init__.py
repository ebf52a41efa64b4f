"""
Learning Pathway Studio - authoring service for prerequisite graphs of learning modules.
"""

__version__ = "1.0.0"
