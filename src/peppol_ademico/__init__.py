"""peppol_ademico -- OAuth2 token management and notification decoding for the Ademico Peppol API.

The package keeps a client-credentials bearer token valid across concurrent
callers and process restarts, and turns the API's polymorphic notification
payloads into typed models.

Typical usage::

    from peppol_ademico.config import load_settings
    from peppol_ademico.client import AdemicoClient

    with AdemicoClient(load_settings()) as client:
        page = client.list_notifications(page=0, size=50)

Modules:
    app: Typer application and ``ademico`` console-script entry point.
    auth: Token cache, persistent store, refresher and coordinator.
    notifications: Notification models and the discriminator decoder.
    client: Thin HTTP client for the notification and submission endpoints.
    models: Pydantic models for settings and token wire payloads.
    config: XDG-aware settings loading and credential resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
