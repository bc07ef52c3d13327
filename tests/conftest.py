"""
Shared pytest fixtures for kubexpose tests.

This module provides common fixtures including:
- KubectlMocker: Mock kubectl subprocess calls with canned responses
- FakeClock: Deterministic clock/sleep pair for the poller
- StaticServiceLookup: In-memory ServiceLookup for resolver tests
"""

import os
import subprocess
import sys
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple, Union
from unittest.mock import MagicMock, patch

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kubexpose.errors import ServiceLookupError
from kubexpose.modules.api.models import ServiceDescriptor


# =============================================================================
# Kubectl Mocking Infrastructure
# =============================================================================

@dataclass
class KubectlResponse:
    """Represents a mocked kubectl command response."""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    def to_completed_process(self) -> MagicMock:
        """Convert to a subprocess.CompletedProcess-like mock."""
        result = MagicMock()
        result.stdout = self.stdout
        result.stderr = self.stderr
        result.returncode = self.returncode
        return result


@dataclass
class KubectlCall:
    """Record of a kubectl call made during testing."""
    command: List[str]
    full_command_str: str
    matched_pattern: Optional[str] = None
    response: Optional[KubectlResponse] = None


class KubectlMocker:
    """
    Mock kubectl subprocess calls with pattern-matched responses.

    Responses registered for the same pattern are played back in order, the
    last one repeating, so a test can script an object appearing or changing
    between poll ticks.

    Usage:
        def test_service_lookup(kubectl_mocker):
            kubectl_mocker.register("get service web", KubectlResponse(
                stdout=json.dumps(service_json("web"))
            ))

            lookup.get_service("default", "web")

            assert kubectl_mocker.was_called_with("get service web")
    """

    def __init__(self):
        self._responses: List[Tuple[Union[str, Pattern], List[KubectlResponse], int]] = []
        self._call_history: List[KubectlCall] = []
        self._default_response = KubectlResponse(
            stderr="Error: mock not configured for this command",
            returncode=1
        )

    def register(
        self,
        pattern: Union[str, Pattern],
        *responses: KubectlResponse,
        priority: int = 0
    ) -> "KubectlMocker":
        """
        Register responses for commands matching the pattern.

        Args:
            pattern: String (substring match) or regex pattern
            responses: Responses returned on successive matching calls
            priority: Higher priority patterns are checked first

        Returns:
            self for chaining
        """
        if not responses:
            raise ValueError("at least one response is required")
        self._responses.append((pattern, list(responses), priority))
        # Sort by priority (highest first)
        self._responses.sort(key=lambda x: x[2], reverse=True)
        return self

    def set_default_response(self, response: KubectlResponse) -> "KubectlMocker":
        """Set the default response for unmatched commands."""
        self._default_response = response
        return self

    def mock_run(
        self,
        cmd: List[str],
        capture_output: bool = True,
        text: bool = True,
        timeout: Optional[int] = None,
        **kwargs
    ) -> MagicMock:
        """
        Mock implementation of subprocess.run for kubectl commands.

        This method is used as a side_effect for patching subprocess.run.
        """
        cmd_str = " ".join(cmd)

        if cmd[0] != "kubectl":
            raise RuntimeError(f"Non-kubectl command blocked: {cmd_str}")

        kubectl_args = " ".join(cmd[1:])
        matched_pattern = None
        response = self._default_response

        for pattern, queue, _ in self._responses:
            if isinstance(pattern, str):
                matched = pattern in kubectl_args
            else:  # Compiled regex
                matched = pattern.search(kubectl_args) is not None
            if matched:
                matched_pattern = pattern if isinstance(pattern, str) else pattern.pattern
                response = queue.pop(0) if len(queue) > 1 else queue[0]
                break

        self._call_history.append(KubectlCall(
            command=cmd,
            full_command_str=cmd_str,
            matched_pattern=matched_pattern,
            response=response
        ))

        return response.to_completed_process()

    @property
    def calls(self) -> List[KubectlCall]:
        """Get all kubectl calls made during the test."""
        return self._call_history

    @property
    def call_count(self) -> int:
        """Get the number of kubectl calls made."""
        return len(self._call_history)

    def was_called_with(self, pattern: str) -> bool:
        """Check if any call contained the given pattern."""
        return any(pattern in call.full_command_str for call in self._call_history)

    def get_calls_matching(self, pattern: str) -> List[KubectlCall]:
        """Get all calls containing the given pattern."""
        return [c for c in self._call_history if pattern in c.full_command_str]

    def reset(self):
        """Clear call history (but keep registered responses)."""
        self._call_history = []


@pytest.fixture
def kubectl_mocker():
    """
    Fixture that provides a KubectlMocker with subprocess.run patched.

    Usage:
        def test_something(kubectl_mocker):
            kubectl_mocker.register("get service", KubectlResponse(stdout="..."))
            # Your test code that calls kubectl
            assert kubectl_mocker.was_called_with("get service")
    """
    mocker = KubectlMocker()
    with patch("subprocess.run", side_effect=mocker.mock_run):
        yield mocker


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    """Clock for driving the poller without real waiting."""
    return FakeClock()


# =============================================================================
# Service Lookup
# =============================================================================

class StaticServiceLookup:
    """In-memory ServiceLookup that records every call."""

    def __init__(self, services: Optional[Dict[Tuple[str, str], ServiceDescriptor]] = None,
                 error: Optional[str] = None):
        self.services = services or {}
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    def add(self, service: ServiceDescriptor) -> "StaticServiceLookup":
        self.services[(service.namespace, service.name)] = service
        return self

    def get_service(self, namespace: str, name: str) -> Optional[ServiceDescriptor]:
        self.calls.append((namespace, name))
        if self.error:
            raise ServiceLookupError(self.error)
        return self.services.get((namespace, name))


@pytest.fixture
def service_lookup():
    """Empty in-memory service lookup."""
    return StaticServiceLookup()


# =============================================================================
# Test Markers Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "kubectl_mock: Tests using mocked kubectl subprocess calls"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests combining several modules"
    )
