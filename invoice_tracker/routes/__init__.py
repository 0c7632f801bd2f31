"""Flask blueprint package for the invoice tracker routes.

Blueprints are defined in the sibling modules (``auth_routes`` and
``invoice_routes``) and registered in :mod:`invoice_tracker.__init__`.
"""
