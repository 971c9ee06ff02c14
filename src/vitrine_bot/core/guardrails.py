
"""Sanitização de texto de entrada."""
import re

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

def sanitize_text(text: str | None) -> str:
    """Remove caracteres de controle e espaços nas pontas, mantendo quebras de linha."""
    text = CONTROL_CHARS.sub("", text or "")
    lines = [" ".join(line.split()) for line in text.splitlines()]
    return "\n".join(line for line in lines if line).strip()
