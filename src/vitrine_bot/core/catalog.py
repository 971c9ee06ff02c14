
"""Snapshot do catálogo (somente leitura) tomado no início de cada turno.

- Fonte: produtos ativos + publicados da empresa (repo).
- Fornece: load_snapshot(), CatalogSnapshot.resolve(), flatten_for_prompt(), format_brl()
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable
from ..repo import repo

@dataclass(frozen=True)
class CatalogItem:
    id: str
    name: str
    price_cents: int
    description: str = ""
    image_urls: tuple[str, ...] = ()
    category: str = ""

    @property
    def first_image(self) -> str | None:
        return self.image_urls[0] if self.image_urls else None

@dataclass(frozen=True)
class CatalogSnapshot:
    """Conjunto imutável de itens vendáveis da empresa no momento do turno."""
    tenant_id: str
    items: tuple[CatalogItem, ...]

    def by_id(self, product_id: str | None) -> CatalogItem | None:
        if not product_id:
            return None
        return next((it for it in self.items if it.id == product_id), None)

    def by_name(self, name: str | None) -> CatalogItem | None:
        """Busca por nome exato, sem diferenciar maiúsculas/minúsculas."""
        key = (name or "").strip().casefold()
        if not key:
            return None
        return next((it for it in self.items if it.name.strip().casefold() == key), None)

    def resolve(self, product_id: str | None = None, name: str | None = None) -> CatalogItem | None:
        """Resolve referência por id exato ou nome; None quando não existe no catálogo."""
        return self.by_id(product_id) or self.by_name(name) or self.by_name(product_id)

    def __len__(self) -> int:
        return len(self.items)

def build_snapshot(tenant_id: str, products: Iterable) -> CatalogSnapshot:
    """Monta o snapshot a partir de linhas de produto (ORM ou similares)."""
    items = tuple(
        CatalogItem(
            id=p.id,
            name=p.name,
            price_cents=int(p.price or 0),
            description=p.description or "",
            image_urls=tuple(p.image_urls or ()),
            category=p.category or "",
        )
        for p in products
    )
    return CatalogSnapshot(tenant_id=tenant_id, items=items)

def load_snapshot(tenant_id: str) -> CatalogSnapshot:
    """Carrega o catálogo vendável (ativo + publicado) da empresa."""
    return build_snapshot(tenant_id, repo.list_sellable_products(tenant_id))

def format_brl(cents: int) -> str:
    """1234567 -> 'R$ 12.345,67'."""
    value = int(cents or 0) / 100
    formatted = f"{value:,.2f}"
    return f"R$ {formatted}".replace(",", "X").replace(".", ",").replace("X", ".")

def flatten_for_prompt(snapshot: CatalogSnapshot, max_items: int = 20) -> str:
    """Linhas compactas do catálogo para o prompt, cada nome entre colchetes."""
    lines: list[str] = []
    for it in snapshot.items[:max_items]:
        line = f"- [{it.name}]: {format_brl(it.price_cents)} (id: {it.id})"
        if it.description:
            line += f" - {it.description[:100]}"
        lines.append(line)
    if len(snapshot.items) > max_items:
        lines.append("… (catálogo truncado no prompt)")
    return "\n".join(lines)
