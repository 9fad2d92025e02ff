from fastapi import Request

from tripquote.services.history_store import HistoryStore
from tripquote.services.search_orchestrator import SearchOrchestrator


def get_history_store(request: Request) -> HistoryStore:
    return request.app.state.history_store


def get_search_orchestrator(request: Request) -> SearchOrchestrator:
    return request.app.state.search_orchestrator
