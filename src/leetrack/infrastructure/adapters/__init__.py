# Infrastructure Adapters Package
from .browser import LocalEventSource, ReportedTabProvider
from .kv_stores import JsonFileStore, MemoryStore
from .leetcode_graphql import LeetCodeGraphQLClient
from .verdict_poller import HttpVerdictPoller

__all__ = [
    "LocalEventSource",
    "ReportedTabProvider",
    "JsonFileStore",
    "MemoryStore",
    "LeetCodeGraphQLClient",
    "HttpVerdictPoller",
]
