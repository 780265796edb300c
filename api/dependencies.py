"""
FastAPI dependencies (shared across routes).

Collaborators live on ``app.state`` and are wired by ``main.create_app``.
"""

from __future__ import annotations

from fastapi import Request

from config.settings import Settings
from core.ocr import OCRExtractor
from database.history import HistoryStore
from utils.llm_providers import BaseLLMProvider


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_history_store(request: Request) -> HistoryStore:
    return request.app.state.history_store


def get_llm(request: Request) -> BaseLLMProvider:
    return request.app.state.llm


def get_ocr(request: Request) -> OCRExtractor:
    return request.app.state.ocr
