# Shared
"""
Shared building blocks for the email subscription custom resource.

- config: pydantic-settings configuration
- exceptions: error taxonomy
- models: custom resource request, outcome and callback envelope
- tools: SNS subscription service and CloudFormation callback notifier
"""

from subscriptions.shared.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
