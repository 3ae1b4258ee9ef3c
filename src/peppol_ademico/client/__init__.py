"""HTTP client for the Ademico Peppol API.

Example::

    from peppol_ademico.client import AdemicoClient

    with AdemicoClient(settings) as client:
        page = client.list_notifications()
"""

from peppol_ademico.client.sync_client import AdemicoClient

__all__ = ["AdemicoClient"]
