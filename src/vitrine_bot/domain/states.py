
"""Máquinas de estado explícitas: modo da conversa e status do pedido.

- ConversationMode: ai → hybrid → human. Voltar para ai só via liberação explícita.
- OrderStatus: pending → confirmed → preparing → shipped → delivered; cancelamento
  permitido enquanto o pedido não foi despachado.
"""
from __future__ import annotations
from enum import Enum

class InvalidTransition(ValueError):
    """Transição de estado não permitida."""
    def __init__(self, machine: str, current: str, target: str):
        super().__init__(f"{machine}: transição inválida {current} -> {target}")
        self.machine = machine
        self.current = current
        self.target = target

class ConversationMode(str, Enum):
    AI = "ai"
    HYBRID = "hybrid"
    HUMAN = "human"

class ConversationStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"

class Channel(str, Enum):
    CHATWEB = "chatweb"
    WHATSAPP = "whatsapp"
    INSTAGRAM = "instagram"

class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

# Transições de takeover (ação do operador). A liberação é tratada à parte.
TAKEOVER_TRANSITIONS: dict[ConversationMode, frozenset[ConversationMode]] = {
    ConversationMode.AI: frozenset({ConversationMode.HYBRID, ConversationMode.HUMAN}),
    ConversationMode.HYBRID: frozenset({ConversationMode.HUMAN}),
    ConversationMode.HUMAN: frozenset(),
}

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.CONFIRMED, OrderStatus.CANCELLED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    OrderStatus.PREPARING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

def takeover(current: ConversationMode | str, target: ConversationMode | str) -> ConversationMode:
    """Valida a tomada de controle pelo operador e retorna o novo modo."""
    cur, tgt = ConversationMode(current), ConversationMode(target)
    if tgt not in TAKEOVER_TRANSITIONS[cur]:
        raise InvalidTransition("mode", cur.value, tgt.value)
    return tgt

def release(current: ConversationMode | str) -> ConversationMode:
    """Liberação explícita: devolve a conversa para a IA."""
    cur = ConversationMode(current)
    if cur is ConversationMode.AI:
        raise InvalidTransition("mode", cur.value, ConversationMode.AI.value)
    return ConversationMode.AI

def advance_order(current: OrderStatus | str, target: OrderStatus | str) -> OrderStatus:
    """Valida mudança de status do pedido e retorna o novo status."""
    cur, tgt = OrderStatus(current), OrderStatus(target)
    if tgt not in ORDER_TRANSITIONS[cur]:
        raise InvalidTransition("order", cur.value, tgt.value)
    return tgt
