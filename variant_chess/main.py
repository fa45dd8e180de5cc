"""ASGI entrypoint: point any ASGI server at `variant_chess.main:app`"""

from variant_chess.api.app import create_app

app = create_app()
