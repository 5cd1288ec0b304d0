"""ASGI entrypoint for the manual operations API."""

from manual_ops.api.app import create_app
from manual_ops.containers import build_container

app = create_app(build_container())
