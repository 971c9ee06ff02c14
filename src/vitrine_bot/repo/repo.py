
"""Repositório: conversas, mensagens (append-only), takeover e eventos de auditoria."""
from __future__ import annotations
import time
from datetime import datetime
from typing import Any
from pydantic import BaseModel
from sqlalchemy import select
from kink import di
from ..repo.models import AgentConfig, Company, Conversation, ConversationEvent, Message, Order, Product
from ..ports.interfaces import MessageDTO
from ..domain import states
from ..core.logging import get_logger

log = get_logger()

class ConversationNotFound(LookupError):
    """Conversa inexistente ou de outra empresa."""

class OrderNotFound(LookupError):
    """Pedido inexistente para a empresa."""

def _to_dto(m: Message) -> MessageDTO:
    return MessageDTO(id=m.id, conversation_id=m.conversation_id, role=m.role, content=m.content, metadata=m.meta)

# ---------- Empresa / agente / catálogo ----------
def get_company(company_id: str) -> Company | None:
    Session = di["session_factory"]
    with Session() as s:
        return s.get(Company, company_id)

def get_agent_config(company_id: str) -> AgentConfig | None:
    """Configuração do agente da empresa (somente ativa)."""
    Session = di["session_factory"]
    with Session() as s:
        return s.execute(
            select(AgentConfig).where(AgentConfig.company_id == company_id, AgentConfig.is_active.is_(True))
        ).scalars().first()

def list_sellable_products(company_id: str) -> list[Product]:
    """Produtos ativos e publicados, em ordem de cadastro."""
    Session = di["session_factory"]
    with Session() as s:
        return list(s.execute(
            select(Product)
            .where(Product.company_id == company_id, Product.is_active.is_(True), Product.status == "published")
            .order_by(Product.created_at.asc(), Product.id.asc())
        ).scalars().all())

# ---------- Conversas ----------
def create_conversation(company_id: str, channel: str, customer_name: str | None = None,
                        customer_phone: str | None = None) -> Conversation:
    """Cria conversa no primeiro contato do cliente."""
    channel = states.Channel(channel).value
    Session = di["session_factory"]
    with Session() as s, s.begin():
        conv = Conversation(
            company_id=company_id,
            channel=channel,
            customer_name=customer_name,
            customer_phone=customer_phone,
            status=states.ConversationStatus.ACTIVE.value,
            mode=states.ConversationMode.AI.value,
        )
        s.add(conv)
    log.info("conversation_created", conversation_id=conv.id, company_id=company_id, channel=channel)
    return conv

def get_conversation(conversation_id: str, company_id: str | None = None) -> Conversation:
    """Carrega a conversa; com company_id, exige que pertença à empresa."""
    Session = di["session_factory"]
    with Session() as s:
        conv = s.get(Conversation, conversation_id)
    if conv is None or (company_id is not None and conv.company_id != company_id):
        raise ConversationNotFound(conversation_id)
    return conv

def update_analysis(conversation_id: str, *, intent: str, sentiment: int, complexity: int, agent_type: str) -> None:
    """Grava os campos de classificação da conversa."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        conv = s.get(Conversation, conversation_id)
        if not conv:
            raise ConversationNotFound(conversation_id)
        conv.current_intent = intent
        conv.sentiment_score = sentiment
        conv.complexity_score = complexity
        conv.active_agent_type = agent_type
        conv.analysis_updated_at = datetime.utcnow()
    log.info("analysis_saved", conversation_id=conversation_id, intent=intent, agent_type=agent_type)

def flag_human_attention(conversation_id: str, reason: str) -> None:
    """Marca a conversa como precisando de atendimento humano."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        conv = s.get(Conversation, conversation_id)
        if not conv:
            raise ConversationNotFound(conversation_id)
        conv.needs_human_attention = True
        conv.transfer_reason = reason
    log.info("human_attention_flagged", conversation_id=conversation_id, reason=reason)

def take_over(conversation_id: str, *, target: str = "human", operator_id: str | None = None,
              clear_attention: bool = True) -> Conversation:
    """Operador assume a conversa (ai → hybrid/human, hybrid → human)."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        conv = s.get(Conversation, conversation_id)
        if not conv:
            raise ConversationNotFound(conversation_id)
        conv.mode = states.takeover(conv.mode, target).value
        conv.taken_over_by = operator_id
        conv.taken_over_at = datetime.utcnow()
        if clear_attention:
            conv.needs_human_attention = False
    log.info("takeover", conversation_id=conversation_id, mode=conv.mode, operator_id=operator_id)
    return conv

def release(conversation_id: str) -> Conversation:
    """Liberação explícita: conversa volta para a IA."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        conv = s.get(Conversation, conversation_id)
        if not conv:
            raise ConversationNotFound(conversation_id)
        conv.mode = states.release(conv.mode).value
        conv.taken_over_by = None
        conv.taken_over_at = None
    log.info("released", conversation_id=conversation_id)
    return conv

def link_customer(conversation_id: str, customer_id: str) -> None:
    """Vincula (referência fraca) a conversa ao cliente identificado."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        conv = s.get(Conversation, conversation_id)
        if conv:
            conv.customer_id = customer_id

# ---------- Mensagens (append-only) ----------
def append_message(conversation_id: str, role: str, content: str, metadata: BaseModel | dict | None = None,
                   operator_id: str | None = None, operator_name: str | None = None) -> MessageDTO:
    """Acrescenta mensagem ao log. Mensagens nunca são alteradas depois de criadas."""
    if isinstance(metadata, BaseModel):
        metadata = metadata.model_dump(mode="json")
    Session = di["session_factory"]
    with Session() as s, s.begin():
        m = Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            meta=metadata,
            operator_id=operator_id,
            operator_name=operator_name,
        )
        s.add(m)
        s.flush()
        dto = _to_dto(m)
    log.info("message_saved", conversation_id=conversation_id, message_id=dto.id, role=role)
    return dto

def list_messages(conversation_id: str) -> list[MessageDTO]:
    """Mensagens em ordem total de criação."""
    Session = di["session_factory"]
    with Session() as s:
        rows = s.execute(
            select(Message).where(Message.conversation_id == conversation_id).order_by(Message.id.asc())
        ).scalars().all()
        return [_to_dto(r) for r in rows]

# ---------- Pedidos (ação do operador) ----------
def update_order_status(company_id: str, order_id: str, target: str) -> Order:
    """Avança o status de um pedido respeitando as transições declaradas."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        order = s.get(Order, order_id)
        if not order or order.company_id != company_id:
            raise OrderNotFound(order_id)
        order.status = states.advance_order(order.status, target).value
    log.info("order_status", company_id=company_id, order_id=order_id, status=order.status)
    return order

# ---------- Auditoria ----------
def log_event(conversation_id: str, kind: str, data: dict[str, Any]) -> None:
    """Registra um evento de auditoria em conversation_events."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        ev = ConversationEvent(conversation_id=conversation_id, kind=kind, data=data, ts=int(time.time() * 1000))
        s.add(ev)
    log.info("conv_event", conversation_id=conversation_id, kind=kind)

def list_events(conversation_id: str, kind: str | None = None) -> list[ConversationEvent]:
    Session = di["session_factory"]
    with Session() as s:
        q = select(ConversationEvent).where(ConversationEvent.conversation_id == conversation_id)
        if kind:
            q = q.where(ConversationEvent.kind == kind)
        return list(s.execute(q.order_by(ConversationEvent.id.asc())).scalars().all())
