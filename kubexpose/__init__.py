"""
Kubexpose - Route targets and convergence checks for Kubernetes workloads

Derives the exposure target a route should forward to from a live service
definition, and verifies that cluster-managed workloads have converged to an
expected configuration after a change.

Architecture:
- Each module is self-contained with clear interfaces
- Cluster access goes through small collaborator protocols
- The resolver and the poller never call each other

Modules:
- api: Shared data models
- resolver: Exposure-target resolution
- poller: Bounded convergence polling and ready-made checks
- cluster: kubectl-backed service lookup and state fetchers
"""

__version__ = "1.0.0"
