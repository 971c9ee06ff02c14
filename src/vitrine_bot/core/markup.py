
"""Scanner da marcação de produtos no texto do agente: `[Nome do Produto]`.

Gramática: token = '[' conteúdo ']', conteúdo sem '[', ']' nem quebra de linha.
Um '[' dentro de um token aberto reinicia o token; quebra de linha o descarta.
"""
from __future__ import annotations

OPEN, CLOSE = "[", "]"
MAX_TOKEN_LEN = 120

def scan_bracket_tokens(text: str | None) -> list[str]:
    """Tokens distintos (sem diferenciar caixa), na ordem da primeira menção."""
    tokens: list[str] = []
    seen: set[str] = set()
    buf: list[str] | None = None
    for ch in text or "":
        if ch == OPEN:
            buf = []
        elif buf is None:
            continue
        elif ch == CLOSE:
            token = "".join(buf).strip()
            buf = None
            if token and len(token) <= MAX_TOKEN_LEN and token.casefold() not in seen:
                seen.add(token.casefold())
                tokens.append(token)
        elif ch == "\n":
            buf = None
        else:
            buf.append(ch)
    return tokens
