
"""Serviço de clientes: upsert deduplicado por telefone → e-mail → CPF → CNPJ."""
from __future__ import annotations
from datetime import datetime
from sqlalchemy import select
from sqlalchemy.orm import Session as OrmSession
from kink import di
from ...core.identifiers import CustomerIdentifiers
from ...repo.models import Customer
from ...core.logging import get_logger

log = get_logger()

_COLUMNS = {
    "phone": Customer.phone,
    "email": Customer.email,
    "cpf": Customer.cpf,
    "cnpj": Customer.cnpj,
}

def find_customer(s: OrmSession, company_id: str, ids: CustomerIdentifiers) -> Customer | None:
    """Primeira chave (em ordem de prioridade) que encontra cliente vence."""
    for key, value in ids.in_priority():
        found = s.execute(
            select(Customer).where(Customer.company_id == company_id, _COLUMNS[key] == value).limit(1)
        ).scalars().first()
        if found:
            return found
    return None

def upsert_for_order(*, company_id: str, name: str, phone_raw: str | None, ids: CustomerIdentifiers,
                     order_total_cents: int, shipping_address: dict | None, channel: str | None) -> Customer:
    """Localiza ou cria o cliente e acumula as estatísticas do pedido."""
    Session = di["session_factory"]
    with Session() as s, s.begin():
        cust = find_customer(s, company_id, ids)
        created = cust is None
        if created:
            cust = Customer(
                company_id=company_id,
                name=name,
                phone=ids.phone,
                phone_raw=phone_raw,
                customer_type="business" if ids.cnpj else "individual",
                total_orders=0,
                total_spent=0,
                first_seen_channel=channel,
                channels=[],
            )
            s.add(cust)
        # preenche identificadores ainda desconhecidos
        for key in ("email", "cpf", "cnpj"):
            value = getattr(ids, key)
            if value and not getattr(cust, key):
                setattr(cust, key, value)
        if ids.cnpj:
            cust.customer_type = "business"
        if not cust.phone and ids.phone:
            cust.phone = ids.phone
        cust.total_orders = int(cust.total_orders or 0) + 1
        cust.total_spent = int(cust.total_spent or 0) + int(order_total_cents)
        if shipping_address:
            cust.shipping_address = shipping_address
        if channel and channel not in (cust.channels or []):
            cust.channels = [*(cust.channels or []), channel]
        cust.updated_at = datetime.utcnow()
    log.info("customer_upsert", company_id=company_id, customer_id=cust.id, created=created)
    return cust
