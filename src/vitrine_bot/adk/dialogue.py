
"""Motor de diálogo: chamada ao modelo e laço limitado de rodadas de tools."""
from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any, Dict, List
from kink import di
from ..core.catalog import format_brl
from ..core.llm_client import LLMClient
from ..core.logging import get_logger
from ..core.settings import Settings
from .runtime.toolkit import TurnContext
from .tools.results import encode_tool_result
from .tools.sales_tools import ToolDispatcher

log = get_logger()

HANDOFF_MESSAGE = "Vou transferir você para um de nossos atendentes. Em instantes alguém vai continuar o atendimento."
GREETING_MESSAGE = "Olá! Seja bem-vindo(a). Como posso ajudar você hoje?"
CLARIFY_MESSAGE = "Desculpe, não consegui entender. Pode me contar com mais detalhes o que você procura?"

def fallback_reply(*, has_history: bool, ctx: TurnContext) -> str:
    """Resposta determinística quando o modelo não produz conteúdo."""
    if ctx.order is not None:
        return (f"Pedido criado com sucesso! Seu código de confirmação é {ctx.order.confirmation_code}. "
                f"Total: {format_brl(ctx.order.total_cents)}.")
    return CLARIFY_MESSAGE if has_history else GREETING_MESSAGE

@dataclass
class DialogueOutcome:
    text: str
    rounds: int = 0
    fallback: bool = False
    handoff: bool = False

class DialogueEngine:
    def __init__(self, llm: LLMClient | None = None, max_rounds: int | None = None):
        self.llm = llm or di[LLMClient]
        self.max_rounds = max_rounds or di[Settings].max_tool_rounds

    def run(self, *, system: str, history: List[Dict[str, Any]], current: Any,
            ctx: TurnContext, dispatcher: ToolDispatcher) -> DialogueOutcome:
        """Executa o turno: no máximo `max_rounds` rodadas de tool antes da resposta final."""
        messages: List[Dict[str, Any]] = [{"role": "system", "content": system}, *history,
                                          {"role": "user", "content": current}]
        tools = dispatcher.openai_tools()
        has_history = bool(history)
        rounds = 0
        while True:
            try:
                msg = self.llm.chat(messages=messages, tools=tools)
            except Exception:
                log.exception("llm_call_failed", conversation_id=ctx.conversation_id, rounds=rounds)
                return DialogueOutcome(fallback_reply(has_history=has_history, ctx=ctx), rounds, fallback=True)

            tool_calls = msg.get("tool_calls") or []
            if not tool_calls:
                text = (msg.get("content") or "").strip()
                if not text:
                    return DialogueOutcome(fallback_reply(has_history=has_history, ctx=ctx), rounds, fallback=True)
                return DialogueOutcome(text, rounds)

            if rounds >= self.max_rounds:
                log.warning("tool_rounds_exceeded", conversation_id=ctx.conversation_id, rounds=rounds)
                return DialogueOutcome(fallback_reply(has_history=has_history, ctx=ctx), rounds, fallback=True)

            # apenas a primeira chamada de cada mensagem é executada
            call = tool_calls[0]
            fn = call.get("function") or {}
            name = fn.get("name") or ""
            arguments = fn.get("arguments")
            if isinstance(arguments, dict):
                arguments = json.dumps(arguments)
            rounds += 1
            result = dispatcher.dispatch(name, arguments, ctx)
            log.info("tool_round", conversation_id=ctx.conversation_id, tool=name, round=rounds,
                     kind=getattr(result, "kind", None))

            if ctx.handoff:
                return DialogueOutcome(HANDOFF_MESSAGE, rounds, handoff=True)

            messages.append({"role": "assistant", "content": msg.get("content"), "tool_calls": [call]})
            messages.append({"role": "tool", "tool_call_id": call.get("id"), "content": encode_tool_result(result)})
