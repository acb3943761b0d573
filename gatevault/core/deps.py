# gatevault/core/deps.py
from fastapi import Request

from gatevault.services.ledger import Ledger


def get_ledger(request: Request) -> Ledger:
    """
    The Ledger built by create_app(); tests may swap it via
    app.dependency_overrides.
    """
    return request.app.state.ledger
