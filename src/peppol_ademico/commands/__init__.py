"""Built-in CLI sub-commands for ademico.

* :mod:`~peppol_ademico.commands.token` -- obtain and inspect the bearer token.
* :mod:`~peppol_ademico.commands.notifications` -- list and decode notifications.
* :mod:`~peppol_ademico.commands.submit` -- upload UBL documents.
* :mod:`~peppol_ademico.commands.config` -- view and modify settings.

Multi-command groups export a :class:`typer.Typer` sub-application; single
commands export a plain callback registered on the root app.
"""
