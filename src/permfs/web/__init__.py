"""HTTP front end for permfs.

This package provides a Flask application that exposes the permfs shell
over HTTP.  It is an **optional** extra — install with::

    pip install py-permfs[web]

The ``create_app`` factory in ``app.py`` boots a session, creates a
shell, and serves the ``/api/execute``, ``/api/status`` and ``/api/ls``
endpoints.
"""
