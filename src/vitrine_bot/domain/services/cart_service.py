
"""Serviço de carrinho: resolve itens pedidos contra o snapshot do catálogo."""
from __future__ import annotations
from typing import Iterable, Protocol
from ...core.catalog import CatalogSnapshot
from ...ports.interfaces import CartLine

class ItemRef(Protocol):
    product_id: str | None
    name: str | None
    quantity: int

def resolve_lines(snapshot: CatalogSnapshot, refs: Iterable[ItemRef]) -> list[CartLine]:
    """Converte referências em linhas com nome e preço do catálogo.

    Referências sem correspondência são descartadas; repetições do mesmo produto
    são somadas, mantendo a ordem da primeira ocorrência.
    """
    lines: dict[str, CartLine] = {}
    for ref in refs:
        item = snapshot.resolve(ref.product_id, ref.name)
        if item is None or ref.quantity <= 0:
            continue
        if item.id in lines:
            lines[item.id].quantity += ref.quantity
        else:
            lines[item.id] = CartLine(product_id=item.id, name=item.name, unit_price_cents=item.price_cents, quantity=ref.quantity)
    return list(lines.values())

def calc_subtotal_cents(lines: Iterable[CartLine]) -> int:
    """Soma dos subtotais em centavos."""
    return sum(line.subtotal_cents for line in lines)
