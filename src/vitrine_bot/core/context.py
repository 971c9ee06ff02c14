
"""Montagem do histórico enviado ao modelo (janela das últimas mensagens)."""
from __future__ import annotations
from typing import Any, Dict, List, Sequence
from ..ports.interfaces import MessageDTO

ROLE_MAP = {"user": "user", "assistant": "assistant", "operator": "assistant"}

def resolve_media_url(url: str, public_base_url: str) -> str:
    """Caminhos relativos (/uploads/...) viram URL absoluta do servidor público."""
    if url.startswith(("http://", "https://", "data:")):
        return url
    return public_base_url.rstrip("/") + "/" + url.lstrip("/")

def user_content(text: str, image_url: str | None, public_base_url: str) -> str | List[Dict[str, Any]]:
    """Conteúdo do usuário: texto puro ou partes multimodais (texto + imagem)."""
    if not image_url:
        return text
    parts: List[Dict[str, Any]] = []
    if text:
        parts.append({"type": "text", "text": text})
    parts.append({"type": "image_url", "image_url": {"url": resolve_media_url(image_url, public_base_url)}})
    return parts

def _is_product_card(m: MessageDTO) -> bool:
    return bool(m.metadata) and m.metadata.get("kind") == "product_image"

def _image_of(m: MessageDTO) -> str | None:
    if m.metadata and m.metadata.get("kind") == "image":
        return m.metadata.get("image_url")
    return None

def build_llm_history(messages: Sequence[MessageDTO], *, window: int, public_base_url: str) -> List[Dict[str, Any]]:
    """Últimas `window` mensagens anteriores no formato de chat do modelo.

    Cartões de produto ficam de fora; mensagens do operador entram como `assistant`.
    """
    relevant = [m for m in messages if m.role in ROLE_MAP and not _is_product_card(m)]
    history: List[Dict[str, Any]] = []
    for m in relevant[-window:] if window > 0 else []:
        role = ROLE_MAP[m.role]
        if role == "user":
            history.append({"role": "user", "content": user_content(m.content, _image_of(m), public_base_url)})
        else:
            history.append({"role": "assistant", "content": m.content})
    return history
