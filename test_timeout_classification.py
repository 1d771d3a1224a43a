#!/usr/bin/env python3
"""
Test script to verify timeout and connection failure classification.
"""

import httpx

from shamela_stream.exceptions import (
    NetworkError,
    NoConnectionError,
    StreamTimeoutError,
    as_transport_error,
    from_httpx_error,
)
from shamela_stream.logging_utils import StreamErrorHandler


def test_timeout_error_classification():
    """Test that TimeoutError is correctly classified as timeout_error."""
    timeout_error = TimeoutError("Connection timed out")
    error_code, error_category = StreamErrorHandler.classify_error(timeout_error)

    print("TimeoutError classification:")
    print(f"  Error: {timeout_error}")
    print(f"  Category: {error_category}")
    print(f"  Code: {error_code}")

    assert error_category == "timeout_error", f"Expected 'timeout_error', got '{error_category}'"
    print("✓ TimeoutError correctly classified as timeout_error")


def test_oserror_classification():
    """Test that OSError is still classified as connection_error."""
    os_error = OSError("Network unreachable")
    error_code, error_category = StreamErrorHandler.classify_error(os_error)

    print("\nOSError classification:")
    print(f"  Error: {os_error}")
    print(f"  Category: {error_category}")
    print(f"  Code: {error_code}")

    assert error_category == "connection_error", f"Expected 'connection_error', got '{error_category}'"
    print("✓ OSError correctly classified as connection_error")


def test_httpx_timeout_mapping():
    """Test that every httpx timeout becomes a retryable StreamTimeoutError."""
    for error in (
        httpx.ConnectTimeout("connect"),
        httpx.ReadTimeout("read"),
        httpx.PoolTimeout("pool"),
    ):
        mapped = from_httpx_error(error)
        print(f"\n{type(error).__name__} → {type(mapped).__name__} ({mapped.debug_code})")
        assert isinstance(mapped, StreamTimeoutError)
        assert mapped.is_retryable
    print("✓ httpx timeouts correctly mapped to StreamTimeoutError")


def test_unresolvable_host_mapping():
    """Test that DNS failures are reported as no connection."""
    error = httpx.ConnectError("[Errno -3] Temporary failure in name resolution")
    mapped = from_httpx_error(error)

    print(f"\nConnectError (DNS) → {type(mapped).__name__} ({mapped.debug_code})")
    assert isinstance(mapped, NoConnectionError)
    assert mapped.debug_code == "E-NET-001"
    print("✓ DNS failure correctly mapped to NoConnectionError")


def test_raw_errors_during_read():
    """Test that non-httpx read failures still become transport errors."""
    assert isinstance(as_transport_error(TimeoutError()), StreamTimeoutError)
    mapped = as_transport_error(ConnectionResetError("reset by peer"))
    assert isinstance(mapped, NetworkError)
    assert "reset by peer" in str(mapped)
    print("✓ Raw read errors correctly wrapped")


if __name__ == "__main__":
    print("Testing error classification...")
    test_timeout_error_classification()
    test_oserror_classification()
    test_httpx_timeout_mapping()
    test_unresolvable_host_mapping()
    test_raw_errors_during_read()
    print("\n🎉 All tests passed! Error classification is working correctly.")
