import pytest
from kink import di
from sqlalchemy import select

from vitrine_bot.adk.tools.sales_tools import ItemArg
from vitrine_bot.core.catalog import load_snapshot
from vitrine_bot.domain.services import cart_service, customer_service
from vitrine_bot.domain.services.order_service import (
    CODE_ALPHABET, NoValidItems, OrderFinalizer, OrderRequest,
)
from vitrine_bot.repo import repo
from vitrine_bot.repo.models import Customer, Order

ADDRESS = {"street": "Praça da Sé, 100", "neighborhood": "Sé", "city": "São Paulo", "state": "SP", "zip": "01001000"}

def _request(items, phone="+55 11 98765-4321", **kw):
    return OrderRequest(customer_name="Ana Souza", customer_phone=phone, items=tuple(items),
                        shipping_address=ADDRESS, **kw)

def _orders():
    with di["session_factory"]() as s:
        return list(s.execute(select(Order)).scalars().all())

def _customers():
    with di["session_factory"]() as s:
        return list(s.execute(select(Customer)).scalars().all())

def test_resolve_lines_drops_unmatched_and_merges_repeats(tenant):
    snap = load_snapshot(tenant.company_id)
    lines = cart_service.resolve_lines(snap, [
        ItemArg(productId=tenant.widget_a, quantity=1),
        ItemArg(name="Produto Fantasma", quantity=5),
        ItemArg(name="widget a", quantity=2),
        ItemArg(productId=tenant.draft, quantity=1),
    ])
    assert [(line.product_id, line.quantity) for line in lines] == [(tenant.widget_a, 3)]
    assert cart_service.calc_subtotal_cents(lines) == 3000

def test_order_total_uses_catalog_prices(tenant):
    snap = load_snapshot(tenant.company_id)
    order = OrderFinalizer().finalize(snapshot=snap, request=_request([
        ItemArg(productId=tenant.widget_a, quantity=2),
        ItemArg(name="Widget B", quantity=1),
        ItemArg(productId="nao-existe", quantity=10),
    ]), channel="chatweb")
    assert order.total_cents == 2 * 1000 + 2500
    assert len(order.confirmation_code) == 4
    assert set(order.confirmation_code) <= set(CODE_ALPHABET)

    [row] = _orders()
    assert row.status == "pending"
    assert row.total == 4500
    assert row.payment_method == "pix"
    assert {i["product_id"] for i in row.items} == {tenant.widget_a, tenant.widget_b}
    assert row.shipping_address == ADDRESS

def test_no_valid_items_creates_no_order(tenant):
    snap = load_snapshot(tenant.company_id)
    with pytest.raises(NoValidItems):
        OrderFinalizer().finalize(snapshot=snap, request=_request([ItemArg(name="Nada", quantity=1)]))
    assert _orders() == []

def test_customer_deduplicated_by_phone_and_stats_accumulated(tenant, conversation):
    snap = load_snapshot(tenant.company_id)
    finalizer = OrderFinalizer()
    first = finalizer.finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)]),
                               conversation_id=conversation.id, channel="chatweb")
    second = finalizer.finalize(snapshot=snap,
                                request=_request([ItemArg(productId=tenant.widget_b, quantity=2)],
                                                 phone="(11) 98765-4321", customer_email="Ana@Exemplo.com"),
                                channel="whatsapp")
    assert first.customer_id == second.customer_id

    [cust] = _customers()
    assert cust.phone == "11987654321"
    assert cust.total_orders == 2
    assert cust.total_spent == 1000 + 5000
    assert cust.email == "ana@exemplo.com"
    assert cust.first_seen_channel == "chatweb"
    assert cust.channels == ["chatweb", "whatsapp"]
    assert repo.get_conversation(conversation.id).customer_id == cust.id

def test_customer_matched_by_email_when_phone_differs(tenant):
    snap = load_snapshot(tenant.company_id)
    finalizer = OrderFinalizer()
    a = finalizer.finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)],
                                                           customer_email="ana@exemplo.com"))
    b = finalizer.finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)],
                                                           phone="21 99999-0000", customer_email="ANA@exemplo.com"))
    assert a.customer_id == b.customer_id
    assert len(_customers()) == 1

def test_cnpj_marks_business_customer(tenant):
    snap = load_snapshot(tenant.company_id)
    OrderFinalizer().finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)],
                                                              customer_cnpj="11.222.333/0001-81",
                                                              customer_cpf="529.982.247-25"))
    [cust] = _customers()
    assert cust.customer_type == "business"
    assert cust.cnpj == "11222333000181"
    assert cust.cpf == "52998224725"

def test_customer_upsert_failure_keeps_order(tenant, monkeypatch):
    def boom(**kwargs):
        raise RuntimeError("db down")
    monkeypatch.setattr(customer_service, "upsert_for_order", boom)
    snap = load_snapshot(tenant.company_id)
    order = OrderFinalizer().finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)]))
    assert order.customer_id is None
    assert len(_orders()) == 1

def test_customers_without_phone_digits_are_kept_apart(tenant):
    snap = load_snapshot(tenant.company_id)
    finalizer = OrderFinalizer()
    a = finalizer.finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)],
                                                           phone="não informado", customer_email="ana@x.com"))
    b = finalizer.finalize(snapshot=snap, request=_request([ItemArg(productId=tenant.widget_a, quantity=1)],
                                                           phone="não informado", customer_email="bia@x.com"))
    assert a.customer_id and b.customer_id and a.customer_id != b.customer_id
    customers = _customers()
    assert sorted(c.email for c in customers) == ["ana@x.com", "bia@x.com"]
    assert all(c.phone is None for c in customers)
    assert all(c.total_orders == 1 for c in customers)
