"""Whitespace normalisation for generated scripts."""

from __future__ import annotations

from typing import List

MAX_BLANK_RUN = 2


class ScriptLinter:
    """Normalises line endings, trailing spaces and blank-line runs."""

    def lint(self, script: str) -> str:
        normalized = script.replace("\r\n", "\n").replace("\r", "\n")
        cleaned: List[str] = []
        blank_run = 0

        for line in normalized.split("\n"):
            stripped = line.rstrip()
            if not stripped:
                blank_run += 1
                if blank_run > MAX_BLANK_RUN:
                    continue
                cleaned.append("")
                continue
            blank_run = 0
            cleaned.append(stripped)

        while cleaned and cleaned[0] == "":
            cleaned.pop(0)
        while cleaned and cleaned[-1] == "":
            cleaned.pop()

        return "\n".join(cleaned) + "\n"
