"""
Generation and history routes.

Each generation endpoint is rate limited per client, resolves the caller
(403 under enforced auth), then validates its input, builds the prompt and
delegates to the LLM provider. Upstream failures surface as 500 with the
underlying message.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from api.dependencies import get_history_store, get_llm, get_ocr, get_settings
from api.errors import bad_request, server_error, upstream_failure
from api.rate_limit import enforce_rate_limit
from auth.dependencies import get_current_identity
from config.settings import Settings
from core.ocr import OCRError, OCRExtractor, extract_upload
from core.prompts import CodePrompts, split_lines
from database.history import HistoryStore
from database.models import ExplainMode, HistoryRecord
from utils.llm_providers import BaseLLMProvider, Message
from utils.schemas import (
    CodeRequest,
    ConvertRequest,
    ExplainLineRequest,
    ExplainRequest,
    PromptToCodeRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["generation"])

RATE_LIMITED = [Depends(enforce_rate_limit)]


# ── helpers ────────────────────────────────────────────────────────────


def _present(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _parse_mode(raw: Optional[str]) -> ExplainMode:
    if not raw:
        return ExplainMode.EXPLAIN
    try:
        return ExplainMode(raw)
    except ValueError:
        allowed = ", ".join(m.value for m in ExplainMode)
        raise bad_request(f"Invalid mode (expected one of: {allowed})")


def _parse_line_number(raw: Any, line_count: int) -> int:
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError):
        raise bad_request("Invalid lineNumber")
    if number < 1 or number > line_count:
        raise bad_request("Invalid lineNumber")
    return number


async def _generate(
    llm: BaseLLMProvider,
    messages: list[Message],
    failure: str,
    **opts: Any,
) -> str:
    try:
        return await llm.complete(messages, **opts)
    except Exception as exc:
        logger.exception("%s", failure)
        raise upstream_failure(failure, exc) from exc


async def _extract_code(
    ocr: OCRExtractor,
    file: Optional[UploadFile],
    settings: Settings,
    failure: str,
) -> str:
    if file is None or not file.filename:
        raise bad_request("No image uploaded")
    try:
        text = await extract_upload(ocr, file, settings.uploads_path)
    except OCRError as exc:
        logger.exception("%s", failure)
        raise upstream_failure(failure, exc) from exc
    if not text.strip():
        raise bad_request("No readable code found")
    return text


def _record(
    store: HistoryStore,
    identity: str,
    language: str,
    mode: ExplainMode,
    code: str,
    explanation: str,
) -> None:
    record = HistoryRecord(
        email=identity,
        language=language,
        mode=mode,
        code=code,
        explanation=explanation,
    )
    if not store.append(record):
        logger.warning("History record %s for %s was not persisted", record.id, identity)


# ── text endpoints ─────────────────────────────────────────────────────


@router.post("/explain", dependencies=RATE_LIMITED)
async def explain(
    req: ExplainRequest,
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    store: HistoryStore = Depends(get_history_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Explain, debug, optimize or comment a snippet; recorded in history."""
    if not _present(req.code):
        raise bad_request("Code is required")
    language = req.language or "unknown"
    mode = _parse_mode(req.mode)

    messages = CodePrompts.explain(req.code, language, mode, settings.max_code_chars)
    explanation = await _generate(llm, messages, "Failed to generate explanation")

    _record(store, identity, language, mode, req.code, explanation)
    return {"explanation": explanation, "mode": mode.value}


@router.post("/explain-line", dependencies=RATE_LIMITED)
async def explain_line(
    req: ExplainLineRequest,
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not req.code or req.line_number in (None, "", 0):
        raise bad_request("Missing code or lineNumber")
    line_number = _parse_line_number(req.line_number, len(split_lines(req.code)))
    language = req.language or "unknown"

    messages = CodePrompts.explain_line(req.code, line_number, language, settings.max_code_chars)
    explanation = await _generate(llm, messages, "Failed to explain line")
    return {"explanation": explanation}


@router.post("/convert", dependencies=RATE_LIMITED)
async def convert(
    req: ConvertRequest,
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not _present(req.code):
        raise bad_request("Code is required")
    source = req.source_language or "unknown"
    target = req.target_language or "unknown"

    messages = CodePrompts.convert(req.code, source, target, settings.max_code_chars)
    return {"result": await _generate(llm, messages, "Conversion failed")}


@router.post("/optimize", dependencies=RATE_LIMITED)
async def optimize(
    req: CodeRequest,
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not _present(req.code):
        raise bad_request("Code is required")
    language = req.language or "unknown"

    messages = CodePrompts.optimize(req.code, language, settings.max_code_chars)
    return {"result": await _generate(llm, messages, "Optimization failed")}


@router.post("/prompt-to-code", dependencies=RATE_LIMITED)
async def prompt_to_code(
    req: PromptToCodeRequest,
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not _present(req.prompt):
        raise bad_request("Prompt is required")
    language = req.language or "Python"

    messages = CodePrompts.prompt_to_code(req.prompt, language, settings.max_code_chars)
    code = await _generate(llm, messages, "Failed to generate code", temperature=0.2)
    return {"result": code}


@router.post("/fill-code", dependencies=RATE_LIMITED)
async def fill_code(
    req: CodeRequest,
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    if not _present(req.code):
        raise bad_request("Code is required")
    language = req.language or "unknown"

    messages = CodePrompts.fill_code(req.code, language, settings.max_code_chars)
    return {"result": await _generate(llm, messages, "Failed to fill code")}


# ── image endpoints ────────────────────────────────────────────────────


@router.post("/scan-code", dependencies=RATE_LIMITED)
async def scan_code(
    file: Optional[UploadFile] = File(None),
    language: Optional[str] = Form(None),
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    ocr: OCRExtractor = Depends(get_ocr),
    store: HistoryStore = Depends(get_history_store),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """OCR a screenshot of code and explain it; recorded in history."""
    failure = "Image processing failed"
    text = await _extract_code(ocr, file, settings, failure)
    language = language or "unknown"

    messages = CodePrompts.explain(text, language, ExplainMode.EXPLAIN, settings.max_code_chars)
    explanation = await _generate(llm, messages, failure)

    extracted = text.strip()
    _record(store, identity, language, ExplainMode.EXPLAIN, extracted, explanation)
    return {"extractedCode": extracted, "explanation": explanation}


@router.post("/convert-image", dependencies=RATE_LIMITED)
async def convert_image(
    file: Optional[UploadFile] = File(None),
    source_language: Optional[str] = Form(None, alias="from"),
    target_language: Optional[str] = Form(None, alias="to"),
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    ocr: OCRExtractor = Depends(get_ocr),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    failure = "Convert image failed"
    text = await _extract_code(ocr, file, settings, failure)

    messages = CodePrompts.convert(
        text, source_language or "unknown", target_language or "unknown", settings.max_code_chars
    )
    return {"extractedCode": text.strip(), "result": await _generate(llm, messages, failure)}


@router.post("/optimize-image", dependencies=RATE_LIMITED)
async def optimize_image(
    file: Optional[UploadFile] = File(None),
    language: Optional[str] = Form(None),
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    ocr: OCRExtractor = Depends(get_ocr),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    failure = "Optimize image failed"
    text = await _extract_code(ocr, file, settings, failure)

    messages = CodePrompts.optimize(text, language or "unknown", settings.max_code_chars)
    return {"extractedCode": text.strip(), "result": await _generate(llm, messages, failure)}


@router.post("/fill-image", dependencies=RATE_LIMITED)
async def fill_image(
    file: Optional[UploadFile] = File(None),
    language: Optional[str] = Form(None),
    identity: str = Depends(get_current_identity),
    llm: BaseLLMProvider = Depends(get_llm),
    ocr: OCRExtractor = Depends(get_ocr),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    failure = "Fill image failed"
    text = await _extract_code(ocr, file, settings, failure)

    messages = CodePrompts.fill_code(text, language or "unknown", settings.max_code_chars)
    return {"extractedCode": text.strip(), "result": await _generate(llm, messages, failure)}


# ── history ────────────────────────────────────────────────────────────


@router.get("/history")
async def get_history(
    identity: str = Depends(get_current_identity),
    store: HistoryStore = Depends(get_history_store),
) -> Dict[str, Any]:
    return {"history": [r.to_json() for r in store.list_for(identity)]}


@router.delete("/history")
async def clear_history(
    identity: str = Depends(get_current_identity),
    store: HistoryStore = Depends(get_history_store),
) -> Dict[str, Any]:
    if store.clear_for(identity) is None:
        raise server_error("Failed to clear history")
    return {"message": "History cleared successfully"}
