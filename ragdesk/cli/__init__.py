"""Command-line tools for ragdesk.

- ``python -m ragdesk.cli.ingest batch`` -- ingest documents stored under a
  classification prefix (``public/``, ``internal/``, ...).
- ``python -m ragdesk.cli.ingest file`` -- ingest one local file, as the
  upload trigger would.

CLI modules construct their own dependencies; they run as one-shot
scripts, not inside the web server.
"""
