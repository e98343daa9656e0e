"""ASGI entrypoint for the attendance ledger API."""

from attendance_ledger.api.app import create_app
from attendance_ledger.containers import build_container

app = create_app(build_container())
