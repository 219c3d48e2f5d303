"""ASGI entrypoint for the what2eat API."""

from what2eat.api.app import create_app
from what2eat.containers import build_container

app = create_app(build_container())
