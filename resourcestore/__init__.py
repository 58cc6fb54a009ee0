"""
resourcestore - persistence layer for agent proxy resources.

Stores memories, tasks, webhooks, bots, settings, team configurations,
personal API keys and session shares in Kubernetes ConfigMaps/Secrets or
S3, behind one repository contract.
"""
__version__ = "0.1.0"
