"""ASGI entrypoint for the World Journal API."""

from world_journal.api.app import create_app
from world_journal.containers import build_container

app = create_app(build_container())
