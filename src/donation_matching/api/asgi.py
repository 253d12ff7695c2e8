"""ASGI entrypoint for the donation matching API."""

from donation_matching.api.app import create_app
from donation_matching.containers import build_container

app = create_app(build_container())
