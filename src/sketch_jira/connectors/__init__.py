"""
Connectors - HTTP access to the JIRA instance.
"""

from .circuit import CircuitBreaker, CircuitState
from .http import ConnectorConfig, HTTPConnector
from .jira import JiraClient

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "ConnectorConfig",
    "HTTPConnector",
    "JiraClient",
]
