"""
Chat message builders for every generation endpoint.
"""

from __future__ import annotations

import re
from typing import Dict, List

from config.settings import config
from database.models import ExplainMode

Messages = List[Dict[str, str]]

TUTOR_SYSTEM = "You are an expert programming tutor."

MODE_INSTRUCTIONS = {
    ExplainMode.EXPLAIN: (
        "Explain code step-by-step in simple language.\n"
        "Start with a short summary."
    ),
    ExplainMode.DEBUG: (
        "Find bugs, logical errors, and edge cases.\n"
        "Explain why they are problems and how to fix them."
    ),
    ExplainMode.OPTIMIZE: (
        "Improve performance and readability.\n"
        "Suggest a better version and explain improvements."
    ),
    ExplainMode.COMMENT: (
        "Add clean inline comments or docstrings.\n"
        "Return mostly commented code."
    ),
}


def truncate(text: str, limit: int | None = None) -> str:
    return str(text)[: limit or config.max_code_chars]


def split_lines(code: str) -> List[str]:
    return re.split(r"\r?\n", str(code))


def _chat(system: str, user: str) -> Messages:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user},
    ]


class CodePrompts:

    @staticmethod
    def explain(code: str, language: str, mode: ExplainMode, limit: int | None = None) -> Messages:
        return _chat(
            TUTOR_SYSTEM,
            f"Language: {language}\nMode: {mode.value}\n\n"
            f"{MODE_INSTRUCTIONS[mode]}\n\n"
            f"Code:\n```{language}\n{truncate(code, limit)}\n```\n",
        )

    @staticmethod
    def explain_line(code: str, line_number: int, language: str, limit: int | None = None) -> Messages:
        """
        Explain one 1-based line, showing two lines of context either side.
        The caller has already checked ``line_number`` is in range.
        """
        lines = split_lines(code)
        idx = line_number - 1
        snippet = "\n".join(lines[max(0, idx - 2): min(len(lines), idx + 3)])
        return _chat(
            TUTOR_SYSTEM,
            f"You are an expert programming tutor. Explain line {line_number} in plain English.\n"
            f"Assume language is {language}.\n"
            f"Context:\n```{language}\n{truncate(snippet, limit)}\n```",
        )

    @staticmethod
    def convert(code: str, source: str, target: str, limit: int | None = None) -> Messages:
        return _chat(
            "You are a helpful code conversion assistant.",
            f"Convert the following code written in {source} into {target}.\n"
            f"Preserve behavior and idiomatic style. Return only code.\n"
            f"Code:\n```{source}\n{truncate(code, limit)}\n```",
        )

    @staticmethod
    def optimize(code: str, language: str, limit: int | None = None) -> Messages:
        return _chat(
            "You are an expert developer who writes optimized code.",
            f"Language: {language}\n"
            f"Optimize for performance/clarity. Explain changes briefly.\n"
            f"Code:\n```{language}\n{truncate(code, limit)}\n```",
        )

    @staticmethod
    def prompt_to_code(prompt: str, language: str, limit: int | None = None) -> Messages:
        return _chat(
            "You generate clear, runnable code from user prompts.",
            f"Language: {language}\n"
            f"Convert this prompt into runnable code. Return only code.\n"
            f"Prompt:\n{truncate(prompt, limit)}",
        )

    @staticmethod
    def fill_code(code: str, language: str, limit: int | None = None) -> Messages:
        return _chat(
            "You complete partial code and fill TODOs.",
            f"Language: {language}\n"
            f"Fill the TODOs/placeholders.\n"
            f"Partial code:\n```{language}\n{truncate(code, limit)}\n```",
        )
