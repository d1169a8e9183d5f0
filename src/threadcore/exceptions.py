# src/threadcore/exceptions.py
"""
Custom exceptions for the threadcore library.

This module defines a hierarchy of exception classes so that callers can
tell configuration problems, LLM provider failures and storage failures
apart. The session cache and the response generator catch most of these
internally and degrade gracefully; they surface mainly from the durable
thread store and from configuration loading.
"""


class ThreadCoreError(Exception):
    """Base class for all threadcore specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in threadcore."):
        super().__init__(message)


class ConfigError(ThreadCoreError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)


class ProviderError(ThreadCoreError):
    """Raised for errors originating from the LLM provider (API errors, quota, malformed responses)."""
    def __init__(self, provider_name: str = "Unknown", message: str = "Provider error."):
        self.provider_name = provider_name
        super().__init__(f"Error with provider '{provider_name}': {message}")


class GenerationTimeoutError(ProviderError):
    """Raised when a single LLM call exceeds the configured request timeout."""
    def __init__(self, provider_name: str = "Unknown", timeout_seconds: float = 0.0):
        self.timeout_seconds = timeout_seconds
        super().__init__(provider_name, f"Request timed out after {timeout_seconds:g}s.")


class StorageError(ThreadCoreError):
    """Base class for errors related to storage operations."""
    def __init__(self, message: str = "Storage error."):
        super().__init__(message)


class SessionCacheError(StorageError):
    """Raised for errors talking to the session cache backend."""
    def __init__(self, message: str = "Session cache error."):
        super().__init__(message)


class SessionSerializationError(SessionCacheError):
    """Raised when a cached session payload cannot be encoded or decoded."""
    def __init__(self, thread_id: str = "", message: str = "Corrupt session payload."):
        self.thread_id = thread_id
        super().__init__(f"{message} Thread ID: '{thread_id}'")


class ThreadStoreError(StorageError):
    """Raised for errors specific to the durable thread/message store."""
    def __init__(self, message: str = "Thread store error."):
        super().__init__(message)


class ThreadNotFoundError(ThreadStoreError):
    """
    Raised when a thread does not exist, or is not owned by the requesting user.
    """
    def __init__(self, thread_id: str, message: str = "Thread not found."):
        self.thread_id = thread_id
        super().__init__(f"{message} Thread ID: '{thread_id}'")
