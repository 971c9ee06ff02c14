
"""As quatro tools fixas do agente de vendas e o despachante que as executa.

- transfer_to_human: marca atenção humana e encerra o turno.
- add_to_cart: resolve itens no snapshot; itens sem correspondência são descartados.
- get_address_by_cep: valida o CEP localmente antes de qualquer chamada externa.
- create_order: delega ao OrderFinalizer (preço sempre do catálogo).
"""
from __future__ import annotations
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field, PositiveInt
from kink import di
from ..runtime.toolkit import ToolRegistry, ToolSpec, TurnContext
from .results import AddressResult, CartResult, OrderResult, ToolFailure, TransferResult
from ...core.catalog import format_brl
from ...domain.services import cart_service
from ...domain.services.cep_service import CepLookupUnavailable, ViaCepClient, normalize_cep
from ...domain.services.order_service import NoValidItems, OrderFinalizer, OrderRequest
from ...ports.interfaces import CartMeta, CepLookupMeta, OrderConfirmationMeta, PostalLookupPort
from ...repo import repo

class _Args(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

class TransferArgs(_Args):
    reason: str = Field(min_length=1, max_length=500, description="Motivo da transferência")
    summary: str = Field(default="", max_length=2000, description="Resumo da conversa para o atendente")

class ItemArg(_Args):
    product_id: str | None = Field(default=None, alias="productId", description="ID do produto no catálogo")
    name: str | None = Field(default=None, description="Nome exato do produto (alternativa ao ID)")
    quantity: PositiveInt = Field(default=1, description="Quantidade")

class AddToCartArgs(_Args):
    items: list[ItemArg] = Field(min_length=1)

class CepArgs(_Args):
    cep: str = Field(description="CEP informado pelo cliente")

class ShippingAddressArg(_Args):
    street: str = Field(description="Rua e número")
    complement: str | None = Field(default=None, description="Complemento (opcional)")
    neighborhood: str = Field(description="Bairro")
    city: str = Field(description="Cidade")
    state: str = Field(description="Estado (UF)")
    zip: str = Field(description="CEP")

class CreateOrderArgs(_Args):
    customer_name: str = Field(alias="customerName", min_length=1, description="Nome completo do cliente")
    customer_phone: str = Field(alias="customerPhone", min_length=1, description="Telefone do cliente")
    shipping_address: ShippingAddressArg = Field(alias="shippingAddress")
    items: list[ItemArg] = Field(min_length=1)
    payment_method: Literal["pix", "card", "boleto", "cash"] = Field(default="pix", alias="paymentMethod")
    customer_email: str | None = Field(default=None, alias="customerEmail")
    customer_cpf: str | None = Field(default=None, alias="customerCpf")
    customer_cnpj: str | None = Field(default=None, alias="customerCnpj")

class ToolDispatcher:
    """Executa as tools do agente sobre o contexto do turno."""

    def __init__(self, cep_client: PostalLookupPort | None = None, finalizer: OrderFinalizer | None = None):
        self.cep_client = cep_client or di[ViaCepClient]
        self.finalizer = finalizer or OrderFinalizer()
        self.registry = ToolRegistry()
        self.registry.register(ToolSpec(
            name="transfer_to_human",
            description="Transfere a conversa para um atendente humano quando você não consegue resolver ou o cliente pede.",
            args_schema=TransferArgs, func=self.transfer_to_human))
        self.registry.register(ToolSpec(
            name="add_to_cart",
            description="Adiciona produtos do catálogo ao carrinho do cliente (por ID ou nome exato).",
            args_schema=AddToCartArgs, func=self.add_to_cart))
        self.registry.register(ToolSpec(
            name="get_address_by_cep",
            description="Busca rua, bairro, cidade e UF a partir do CEP (8 dígitos).",
            args_schema=CepArgs, func=self.get_address_by_cep))
        self.registry.register(ToolSpec(
            name="create_order",
            description="Cria o pedido depois de coletar nome, telefone, endereço completo e itens. Use apenas com TODAS as informações.",
            args_schema=CreateOrderArgs, func=self.create_order))

    def openai_tools(self) -> list[dict]:
        return self.registry.openai_tools()

    def dispatch(self, name: str, arguments_json: str | None, ctx: TurnContext) -> BaseModel:
        result = self.registry.execute(name, arguments_json, ctx)
        repo.log_event(ctx.conversation_id, "tool_result", {"tool": name, "result": result.model_dump(mode="json")})
        return result

    # ---------- tools ----------
    def transfer_to_human(self, args: TransferArgs, ctx: TurnContext) -> TransferResult:
        repo.flag_human_attention(ctx.conversation_id, args.reason)
        if args.summary:
            repo.log_event(ctx.conversation_id, "transfer_summary", {"summary": args.summary})
        ctx.handoff = True
        return TransferResult(reason=args.reason)

    def add_to_cart(self, args: AddToCartArgs, ctx: TurnContext) -> CartResult | ToolFailure:
        lines = cart_service.resolve_lines(ctx.snapshot, args.items)
        if not lines:
            return ToolFailure(tool="add_to_cart", error="no_items_matched",
                               message="Nenhum dos itens está no catálogo. Mostre opções disponíveis ao cliente.")
        subtotal = cart_service.calc_subtotal_cents(lines)
        ctx.metadata.append(CartMeta(items=lines, subtotal_cents=subtotal))
        return CartResult(items=lines, subtotal_cents=subtotal, subtotal=format_brl(subtotal))

    def get_address_by_cep(self, args: CepArgs, ctx: TurnContext) -> AddressResult | ToolFailure:
        cep = normalize_cep(args.cep)
        if cep is None:
            return ToolFailure(tool="get_address_by_cep", error="invalid_cep",
                               message="CEP inválido: precisa ter 8 dígitos. Peça o CEP novamente.")
        try:
            address = self.cep_client.lookup(cep)
        except CepLookupUnavailable:
            return ToolFailure(tool="get_address_by_cep", error="lookup_unavailable",
                               message="Consulta de CEP indisponível. Peça ao cliente o endereço completo manualmente.")
        if address is None:
            return ToolFailure(tool="get_address_by_cep", error="cep_not_found",
                               message="CEP não encontrado. Confirme o CEP com o cliente.")
        ctx.metadata.append(CepLookupMeta(address=address))
        return AddressResult(address=address)

    def create_order(self, args: CreateOrderArgs, ctx: TurnContext) -> OrderResult | ToolFailure:
        request = OrderRequest(
            customer_name=args.customer_name,
            customer_phone=args.customer_phone,
            items=tuple(args.items),
            shipping_address=args.shipping_address.model_dump(exclude_none=True),
            payment_method=args.payment_method,
            customer_email=args.customer_email,
            customer_cpf=args.customer_cpf,
            customer_cnpj=args.customer_cnpj,
        )
        try:
            order = self.finalizer.finalize(snapshot=ctx.snapshot, request=request,
                                            conversation_id=ctx.conversation_id, channel=ctx.channel)
        except NoValidItems:
            return ToolFailure(tool="create_order", error="no_valid_items",
                               message="Nenhum item do pedido está no catálogo. Confirme os produtos com o cliente.")
        ctx.order = order
        ctx.metadata.append(OrderConfirmationMeta(order_id=order.order_id, confirmation_code=order.confirmation_code,
                                                  total_cents=order.total_cents))
        repo.log_event(ctx.conversation_id, "order_created", {
            "order_id": order.order_id, "confirmation_code": order.confirmation_code, "total_cents": order.total_cents,
        })
        return OrderResult(order_id=order.order_id, confirmation_code=order.confirmation_code,
                           total_cents=order.total_cents, total=format_brl(order.total_cents))
