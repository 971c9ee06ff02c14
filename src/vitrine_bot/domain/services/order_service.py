
"""Finalização de pedidos: revalida preços no catálogo, cria o pedido e faz upsert do cliente.

Nunca confia em preço ou nome vindos do modelo: cada item é resolvido de novo
contra o snapshot e o total é recalculado no servidor.
"""
from __future__ import annotations
import secrets
import string
from dataclasses import dataclass
from sqlalchemy import select
from kink import di
from ...core.catalog import CatalogSnapshot
from ...core.identifiers import normalize_identifiers
from ...core.logging import get_logger
from ...domain import states
from ...ports.interfaces import CartLine
from ...repo import repo
from ...repo.models import Order
from . import cart_service, customer_service

log = get_logger()

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_LENGTH = 4
CODE_ATTEMPTS = 20

class NoValidItems(ValueError):
    """Nenhum item do pedido existe no catálogo vendável."""

@dataclass(frozen=True)
class OrderRequest:
    customer_name: str
    customer_phone: str
    items: tuple  # referências com product_id / name / quantity
    shipping_address: dict | None = None
    payment_method: str = "pix"
    customer_email: str | None = None
    customer_cpf: str | None = None
    customer_cnpj: str | None = None

@dataclass(frozen=True)
class FinalizedOrder:
    order_id: str
    confirmation_code: str
    total_cents: int
    lines: tuple[CartLine, ...]
    customer_id: str | None

def generate_confirmation_code() -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))

def _unique_code(s, company_id: str) -> str:
    for _ in range(CODE_ATTEMPTS):
        code = generate_confirmation_code()
        taken = s.execute(
            select(Order.id).where(Order.company_id == company_id, Order.confirmation_code == code).limit(1)
        ).scalar()
        if taken is None:
            return code
    raise RuntimeError("não foi possível gerar código de confirmação único")

class OrderFinalizer:
    """Cria pedidos a partir do snapshot do catálogo (preço autoritativo)."""

    def finalize(self, *, snapshot: CatalogSnapshot, request: OrderRequest,
                 conversation_id: str | None = None, channel: str | None = None) -> FinalizedOrder:
        lines = cart_service.resolve_lines(snapshot, request.items)
        if not lines:
            raise NoValidItems("nenhum item do pedido corresponde ao catálogo")
        total = cart_service.calc_subtotal_cents(lines)

        Session = di["session_factory"]
        with Session() as s, s.begin():
            order = Order(
                company_id=snapshot.tenant_id,
                conversation_id=conversation_id,
                customer_name=request.customer_name,
                customer_phone=request.customer_phone,
                customer_email=request.customer_email,
                status=states.OrderStatus.PENDING.value,
                total=total,
                payment_method=request.payment_method,
                items=[line.model_dump() for line in lines],
                shipping_address=request.shipping_address,
                confirmation_code=_unique_code(s, snapshot.tenant_id),
            )
            s.add(order)
            s.flush()
            order_id, code = order.id, order.confirmation_code
        log.info("order_created", company_id=snapshot.tenant_id, order_id=order_id, total_cents=total, items=len(lines))

        customer_id = self._upsert_customer(snapshot.tenant_id, request, total, conversation_id, channel)
        return FinalizedOrder(order_id=order_id, confirmation_code=code, total_cents=total,
                              lines=tuple(lines), customer_id=customer_id)

    def _upsert_customer(self, company_id: str, request: OrderRequest, total: int,
                         conversation_id: str | None, channel: str | None) -> str | None:
        """Falha aqui é registrada e não invalida o pedido já criado."""
        ids = normalize_identifiers(
            phone=request.customer_phone,
            email=request.customer_email,
            cpf=request.customer_cpf,
            cnpj=request.customer_cnpj,
        )
        try:
            cust = customer_service.upsert_for_order(
                company_id=company_id,
                name=request.customer_name,
                phone_raw=request.customer_phone,
                ids=ids,
                order_total_cents=total,
                shipping_address=request.shipping_address,
                channel=channel,
            )
            if conversation_id:
                repo.link_customer(conversation_id, cust.id)
            return cust.id
        except Exception:
            log.exception("customer_upsert_failed", company_id=company_id, conversation_id=conversation_id)
            return None
