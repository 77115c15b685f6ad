"""Olimpus Router

Rule-based delegation routing for meta-agents plus ahead-of-time validation
of the declared delegation topology.

Architecture:
    olimpus.yaml → config loader → validator (load time)
                                 → MetaAgentRegistry → routing → matchers (request time)"""

__version__ = "0.4.0"
