
"""Resultados de tools como união com tag (`kind`): sempre JSON estruturado e re-parseável."""
from __future__ import annotations
from typing import Annotated, Literal, Union
from pydantic import BaseModel, Field, TypeAdapter
from ...ports.interfaces import Address, CartLine

class TransferResult(BaseModel):
    kind: Literal["transfer"] = "transfer"
    ok: Literal[True] = True
    reason: str
    message: str = "Conversa transferida para um atendente humano."

class CartResult(BaseModel):
    kind: Literal["cart"] = "cart"
    ok: Literal[True] = True
    items: list[CartLine]
    subtotal_cents: int
    subtotal: str
    message: str = "Itens adicionados ao carrinho. Confirme com o cliente."

class AddressResult(BaseModel):
    kind: Literal["address"] = "address"
    ok: Literal[True] = True
    address: Address
    message: str = "Endereço encontrado. Confirme com o cliente e peça número e complemento."

class OrderResult(BaseModel):
    kind: Literal["order"] = "order"
    ok: Literal[True] = True
    order_id: str
    confirmation_code: str
    total_cents: int
    total: str
    message: str = "Pedido criado com sucesso! Informe o código de confirmação ao cliente."

class ToolFailure(BaseModel):
    kind: Literal["error"] = "error"
    ok: Literal[False] = False
    tool: str
    error: str
    message: str

ToolResult = Annotated[
    Union[TransferResult, CartResult, AddressResult, OrderResult, ToolFailure],
    Field(discriminator="kind"),
]
TOOL_RESULT_ADAPTER: TypeAdapter[ToolResult] = TypeAdapter(ToolResult)

def encode_tool_result(result: BaseModel) -> str:
    return result.model_dump_json()

def decode_tool_result(raw: str | bytes) -> ToolResult:
    """Decodifica o conteúdo de uma mensagem `tool` de volta para o modelo tipado."""
    return TOOL_RESULT_ADAPTER.validate_json(raw)
