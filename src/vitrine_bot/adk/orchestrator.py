
"""Orquestrador do pipeline de vendas: uma mensagem do cliente → resposta do agente.

Fluxo: transcrição (áudio) → mensagem do cliente salva → trava de modo → snapshot do
catálogo → análise → especialista + prompt → diálogo com tools → resposta salva →
cartões de produto → evento `llm_turn`.
"""
from __future__ import annotations
from kink import di
from ..core.catalog import flatten_for_prompt, load_snapshot
from ..core.context import build_llm_history, user_content
from ..core.guardrails import sanitize_text
from ..core.llm_client import LLMClient
from ..core.logging import get_logger
from ..core.prompting import PromptBuilder
from ..core.settings import Settings
from ..domain import states
from ..ports.interfaces import ImageMeta, InboundMessageDTO, TranscriberPort, TurnResult
from ..repo import repo
from .analyzer import ConversationAnalyzer
from .dialogue import DialogueEngine
from .media import MediaAnnotator
from .runtime.toolkit import TurnContext
from .specialists import select_specialist
from .tools.sales_tools import ToolDispatcher

log = get_logger()

class EmptyMessage(ValueError):
    """Mensagem sem texto e sem imagem."""

class SalesOrchestrator:
    def __init__(self, llm: LLMClient | None = None, transcriber: TranscriberPort | None = None,
                 dispatcher: ToolDispatcher | None = None):
        self.settings: Settings = di[Settings]
        self.llm = llm or di[LLMClient]
        self.transcriber = transcriber or self.llm
        self.builder: PromptBuilder = di[PromptBuilder]
        self.analyzer = ConversationAnalyzer(self.llm, self.settings.analysis_window)
        self.engine = DialogueEngine(self.llm, self.settings.max_tool_rounds)
        self.dispatcher = dispatcher or ToolDispatcher()
        self.annotator = MediaAnnotator()

    def _transcribe(self, inbound: InboundMessageDTO) -> str:
        if inbound.audio is None:
            return ""
        try:
            return self.transcriber.transcribe(inbound.audio)
        except Exception:
            log.exception("transcription_failed", conversation_id=inbound.conversation_id)
            return ""

    def handle_inbound(self, inbound: InboundMessageDTO) -> TurnResult:
        conv = repo.get_conversation(inbound.conversation_id, company_id=inbound.tenant_id)

        text = sanitize_text(inbound.content)
        transcript = sanitize_text(self._transcribe(inbound))
        if transcript:
            text = f"{text}\n{transcript}" if text else transcript
        image_url = inbound.image_url or None
        if not text and not image_url:
            raise EmptyMessage(inbound.conversation_id)

        prior = repo.list_messages(conv.id)
        repo.append_message(conv.id, "user", text, ImageMeta(image_url=image_url) if image_url else None)

        if conv.mode != states.ConversationMode.AI.value:
            repo.log_event(conv.id, "handoff_gated", {"mode": conv.mode})
            log.info("handoff_gated", conversation_id=conv.id, mode=conv.mode)
            return TurnResult(gated=True)

        snapshot = load_snapshot(conv.company_id)
        company = repo.get_company(conv.company_id)
        agent = repo.get_agent_config(conv.company_id)

        turns = repo.list_messages(conv.id)
        analysis = self.analyzer.analyze(conv.id, turns)
        specialist = select_specialist(analysis.suggested_agent)

        history = build_llm_history(prior, window=self.settings.history_window,
                                    public_base_url=self.settings.public_base_url)
        system = self.builder.sales_system(
            agent=agent,
            company_name=company.name if company else "",
            specialist=specialist,
            analysis=analysis,
            has_history=bool(history),
            catalog_text=flatten_for_prompt(snapshot, max_items=self.settings.catalog_prompt_limit),
        )
        ctx = TurnContext(tenant_id=conv.company_id, conversation_id=conv.id, channel=conv.channel, snapshot=snapshot)
        outcome = self.engine.run(
            system=system,
            history=history,
            current=user_content(text, image_url, self.settings.public_base_url),
            ctx=ctx,
            dispatcher=self.dispatcher,
        )

        reply = repo.append_message(conv.id, "assistant", outcome.text, ctx.last_metadata)
        media = self.annotator.annotate(conv.id, outcome.text, snapshot)

        repo.log_event(conv.id, "llm_turn", {
            "agent_type": specialist.key,
            "intent": analysis.intent,
            "tool_rounds": outcome.rounds,
            "fallback": outcome.fallback,
            "handoff": outcome.handoff,
            "order_id": ctx.order.order_id if ctx.order else None,
            "media": len(media),
        })
        log.info("turn_done", conversation_id=conv.id, agent_type=specialist.key, rounds=outcome.rounds,
                 fallback=outcome.fallback)
        return TurnResult(message=reply, media=media)
