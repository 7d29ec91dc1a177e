"""ASGI entrypoint for the Dietly API."""

from dietly.api.app import create_app
from dietly.containers import build_container

app = create_app(build_container())
