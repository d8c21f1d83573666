"""WSGI entrypoint for serving the PraxisTax API behind gunicorn or Passenger."""

from praxistax.backend.app import create_app

application = create_app()
